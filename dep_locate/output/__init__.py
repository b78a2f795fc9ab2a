"""Output formatters for DepLocate."""

from .formatters import ConsoleFormatter, JSONFormatter, LocationReport

__all__ = [
    "ConsoleFormatter",
    "JSONFormatter",
    "LocationReport",
]
