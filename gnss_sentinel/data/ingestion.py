"""
Measurement ingestion from recorded GNSS logs.

Replays the CSV logs written by the mobile receiver so the detection pipeline
can be driven offline. Each log interleaves two row types:

    timestamp,datetime,type,latitude,longitude,altitude,accuracy,speed,bearing,provider,svid,constellation,cn0DbHz,carrierFrequencyHz,timeNanos
    1730385022000,2024-10-31 14:30:22.000,location,59.91,10.75,12.0,4.5,3.1,182.0,gps,,,,,
    1730385022150,2024-10-31 14:30:22.150,measurement,,,,,,,,5,GPS,41.8,1575420030.0,812341000000

An optional ``agcLevelDb`` column is honoured when present.

Design:
- Iterator-based for memory efficiency with long recordings
- Measurement rows sharing a timeNanos value form one batch
- Each batch carries the most recent fix seen before it closes
- Bad rows logged and skipped, they don't crash the replay
"""

import csv
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from gnss_sentinel.core.exceptions import DataValidationError, MeasurementIngestionError
from gnss_sentinel.data.schema import Location, Measurement

logger = logging.getLogger(__name__)


class MeasurementBatch(BaseModel):
    """
    One receiver callback worth of measurements.

    Attributes:
        timestamp: UTC wall-clock time of the first row in the batch
        measurements: Per-satellite measurements
        location: Most recent fix seen while reading the batch (optional)
    """

    timestamp: datetime
    measurements: List[Measurement] = Field(default_factory=list)
    location: Optional[Location] = None


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return float(value)


def _ms_to_datetime(value: Optional[str]) -> datetime:
    if value is None:
        raise ValueError("missing timestamp")
    return datetime.fromtimestamp(int(value.strip()) / 1000.0, tz=timezone.utc)


class BaseMeasurementSource(ABC):
    """
    Abstract base class for recorded measurement sources.
    """

    def __init__(self, filepath: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize measurement source.

        Args:
            filepath: Path to recorded log
            encoding: File encoding (default utf-8)

        Raises:
            MeasurementIngestionError: If file doesn't exist
        """
        self.filepath = Path(filepath)
        self.encoding = encoding
        self.skipped_rows = 0

        if not self.filepath.exists():
            raise MeasurementIngestionError(f"Measurement log not found: {self.filepath}")

    @abstractmethod
    def ingest(self) -> Iterator[MeasurementBatch]:
        """
        Yield measurement batches in recording order.
        """
        pass


class CSVMeasurementLogSource(BaseMeasurementSource):
    """
    Ingests CSV measurement logs recorded by the receiver.
    """

    REQUIRED_COLUMNS = {"timestamp", "type"}

    def ingest(self) -> Iterator[MeasurementBatch]:
        """
        Read the CSV log and group measurement rows into batches.

        Yields:
            MeasurementBatch per distinct timeNanos value

        Raises:
            MeasurementIngestionError: If the file cannot be read or lacks a header
        """
        try:
            with open(self.filepath, "r", encoding=self.encoding, newline="") as f:
                reader = csv.DictReader(f)
                if reader.fieldnames is None or not self.REQUIRED_COLUMNS.issubset(reader.fieldnames):
                    raise MeasurementIngestionError(
                        f"CSV log missing required columns {sorted(self.REQUIRED_COLUMNS)}: {self.filepath}"
                    )

                last_location: Optional[Location] = None
                batch: Optional[MeasurementBatch] = None
                batch_key: Optional[str] = None

                for line_num, row in enumerate(reader, start=2):
                    row_type = (row.get("type") or "").strip().lower()

                    try:
                        if row_type == "location":
                            last_location = self._parse_location(row)
                            continue

                        if row_type != "measurement":
                            raise DataValidationError(f"unknown row type {row_type!r}")

                        measurement, key, timestamp = self._parse_measurement(row)

                        if batch is not None and key != batch_key:
                            batch.location = last_location
                            yield batch
                            batch = None

                        if batch is None:
                            batch = MeasurementBatch(timestamp=timestamp)
                            batch_key = key

                        batch.measurements.append(measurement)

                    except DataValidationError as e:
                        self.skipped_rows += 1
                        logger.warning(f"Skipping malformed row {line_num} in {self.filepath}: {e}")

                if batch is not None:
                    batch.location = last_location
                    yield batch

        except MeasurementIngestionError:
            raise
        except Exception as e:
            # Undecodable bytes and csv.Error surface while iterating the reader
            logger.error(f"Error reading measurement log {self.filepath}: {e}")
            raise MeasurementIngestionError(f"Failed to read measurement log: {e}") from e

    @staticmethod
    def _parse_location(row: Dict[str, Optional[str]]) -> Location:
        try:
            return Location(
                lat=float(row["latitude"]),
                lon=float(row["longitude"]),
                altitude=_optional_float(row.get("altitude")),
                accuracy=_optional_float(row.get("accuracy")),
                speed=_optional_float(row.get("speed")),
                bearing=_optional_float(row.get("bearing")),
                provider=(row.get("provider") or "").strip() or None,
                time=_ms_to_datetime(row["timestamp"]),
            )
        except (ValueError, TypeError, KeyError) as e:
            raise DataValidationError(f"invalid location row: {e}") from e

    @staticmethod
    def _parse_measurement(row: Dict[str, Optional[str]]) -> Tuple[Measurement, str, datetime]:
        """
        Parse a measurement row.

        Returns:
            (measurement, batch key, row timestamp)
        """
        try:
            measurement = Measurement(
                satellite_id=int(float(row["svid"])),
                signal_db=_optional_float(row.get("cn0DbHz")),
                gain_db=_optional_float(row.get("agcLevelDb")),
                constellation=(row.get("constellation") or "").strip() or None,
                carrier_freq_hz=_optional_float(row.get("carrierFrequencyHz")),
            )
            timestamp = _ms_to_datetime(row["timestamp"])
        except (ValueError, TypeError, KeyError) as e:
            raise DataValidationError(f"invalid measurement row: {e}") from e

        key = (row.get("timeNanos") or "").strip() or (row.get("timestamp") or "").strip()
        return measurement, key, timestamp


def ingest_measurement_log(
    filepath: Union[str, Path],
    encoding: str = "utf-8",
) -> Iterator[MeasurementBatch]:
    """
    Convenience wrapper: replay a recorded CSV measurement log.

    Args:
        filepath: Path to the log file
        encoding: File encoding

    Yields:
        MeasurementBatch objects in recording order

    Raises:
        MeasurementIngestionError: If the file is missing or unreadable
    """
    source = CSVMeasurementLogSource(filepath, encoding=encoding)
    yield from source.ingest()
    if source.skipped_rows:
        logger.info(f"Replay of {filepath} skipped {source.skipped_rows} malformed rows")
