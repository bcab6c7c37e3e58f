"""
Custom exceptions for GNSS Sentinel.

These exceptions provide clear error semantics across the system.
Each failure category gets its own subclass of GnssSentinelError.
"""


class GnssSentinelError(Exception):
    """Base exception for GNSS Sentinel failures."""
    pass


class DataValidationError(GnssSentinelError):
    """Raised when measurement or location data fails validation."""
    pass


class MeasurementIngestionError(GnssSentinelError):
    """Raised when a recorded measurement log cannot be read."""
    pass


class StorageError(GnssSentinelError):
    """Raised by storage collaborators when saving or loading history fails."""
    pass

