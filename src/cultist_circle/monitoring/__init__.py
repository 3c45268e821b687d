"""Monitoring module for the Cultist Circle optimizer.

Provides metrics tracking, JSON export and console summaries for runs.
"""

from .metrics import RunMetrics, export_to_json, print_summary

__all__ = [
    # Metrics
    "RunMetrics",
    "export_to_json",
    "print_summary",
]
