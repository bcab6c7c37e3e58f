"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, DetectorConfig, DropThresholds, StorageConfig, config
from .exceptions import (
    DataValidationError,
    GnssSentinelError,
    MeasurementIngestionError,
    StorageError,
)
from .logging_config import setup_logging

__all__ = [
    "Config",
    "DetectorConfig",
    "DropThresholds",
    "StorageConfig",
    "config",
    "setup_logging",
    "GnssSentinelError",
    "DataValidationError",
    "MeasurementIngestionError",
    "StorageError",
]
