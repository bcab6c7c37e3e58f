"""
GNSS Sentinel: GNSS signal-quality anomaly detection for vessel tracking.
"""

__version__ = "0.1.0"
