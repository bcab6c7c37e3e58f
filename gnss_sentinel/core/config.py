"""
Application configuration for GNSS Sentinel.

Provides environment-aware settings with conservative defaults. Window sizes
and drop thresholds are configurable to avoid hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DropThresholds(BaseModel):
	"""
	Percentage drops that map to anomaly severities.

	Rationale:
	- low is the detection floor; anything below it is normal fluctuation.
	- The same low threshold decides whether AGC moved significantly.
	"""

	low: float = Field(7.0, gt=0.0, description="Minimum C/N0 drop (%) to flag an anomaly")
	medium: float = Field(10.0, gt=0.0, description="Medium severity C/N0 drop (%)")
	high: float = Field(15.0, gt=0.0, description="High severity C/N0 drop (%)")

	@model_validator(mode="after")
	def _check_order(self) -> "DropThresholds":
		if not self.low <= self.medium <= self.high:
			raise ValueError("Drop thresholds must satisfy low <= medium <= high")
		return self


class DetectorConfig(BaseModel):
	"""
	Configuration for the sliding-window detector.

	Notes:
	- baseline_window: oldest epochs treated as "normal" reference.
	- recent_window: newest epochs compared against the baseline.
	- min_gain_coverage: fraction of epochs in a window that must report AGC
	  before gain metrics are computed.
	"""

	baseline_window: int = Field(50, ge=1)
	recent_window: int = Field(10, ge=1)
	min_gain_coverage: float = Field(0.5, gt=0.0, le=1.0)
	thresholds: DropThresholds = DropThresholds()

	@property
	def capacity(self) -> int:
		return self.baseline_window + self.recent_window


class StorageConfig(BaseModel):
	"""
	Storage collaborator defaults.
	"""

	history_path: Path = Field(Path("data/anomalies.json"))


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="GNSS_", env_file=".env", env_nested_delimiter="__", extra="ignore"
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	detector: DetectorConfig = DetectorConfig()
	storage: StorageConfig = StorageConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
