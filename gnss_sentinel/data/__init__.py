"""
Data module: Measurement schema, epoch aggregation, and log replay.

Pipeline:

    Receiver callback / recorded CSV log
        ↓
    Ingestion (gnss_sentinel/data/ingestion.py) → MeasurementBatch
        ↓
    Aggregation (gnss_sentinel/data/aggregation.py) → Epoch
        ↓
    Ready for anomaly detection (gnss_sentinel/anomaly)
"""

from gnss_sentinel.data.aggregation import make_epoch
from gnss_sentinel.data.geo import format_duration, format_location, haversine_distance, path_distance
from gnss_sentinel.data.ingestion import (
    CSVMeasurementLogSource,
    MeasurementBatch,
    ingest_measurement_log,
)
from gnss_sentinel.data.schema import Epoch, Location, Measurement

__all__ = [
    # Schema
    "Measurement",
    "Location",
    "Epoch",

    # Ingestion
    "MeasurementBatch",
    "CSVMeasurementLogSource",
    "ingest_measurement_log",

    # Aggregation
    "make_epoch",

    # Geo
    "haversine_distance",
    "path_distance",
    "format_duration",
    "format_location",
]
