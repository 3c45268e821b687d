"""
Exception hierarchy for the optimizer.

Search outcomes (no subset reaches the threshold, no arrangement fits the
grid) are returned as values, never raised.  These errors are reserved for
bad input caught at the boundary.
"""


class CultistCircleError(Exception):
    """Base class for all optimizer errors."""


class InvalidParameterError(CultistCircleError, ValueError):
    """A threshold, item count, item field or grid size is out of range."""


class SchemaError(CultistCircleError, ValueError):
    """An input file does not match the expected item/inventory schema."""


class ConfigError(CultistCircleError, ValueError):
    """A settings file could not be read or failed validation."""
