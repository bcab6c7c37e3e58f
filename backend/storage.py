"""
Storage collaborators for anomaly history.

The controller only needs save/load/clear of the full history list. Concrete
stores raise StorageError on failure; the controller catches and logs it so a
broken store never disturbs detector state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from backend.lifecycle.schema import AnomalyEvent
from gnss_sentinel.core.exceptions import StorageError

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(List[AnomalyEvent])


class BaseAnomalyStorage(ABC):
    """
    Abstract history store.

    Subclasses implement save/load/clear; the single-event helpers are built
    on top of them.
    """

    @abstractmethod
    def save_history(self, events: List[AnomalyEvent]) -> None:
        pass

    @abstractmethod
    def load_history(self) -> List[AnomalyEvent]:
        pass

    @abstractmethod
    def clear_history(self) -> None:
        pass

    def add_event(self, event: AnomalyEvent) -> None:
        self.save_history(self.load_history() + [event])

    def delete_event(self, event_id: str) -> bool:
        """Remove an event by id. Returns True if something was removed."""
        events = self.load_history()
        remaining = [e for e in events if e.id != event_id]
        if len(remaining) == len(events):
            return False
        self.save_history(remaining)
        return True

    def count(self) -> int:
        return len(self.load_history())


class InMemoryAnomalyStorage(BaseAnomalyStorage):
    """
    Process-local store. Keeps deep copies so callers cannot mutate history.
    """

    def __init__(self, events: Optional[List[AnomalyEvent]] = None) -> None:
        self._events: List[AnomalyEvent] = [e.model_copy(deep=True) for e in events or []]

    def save_history(self, events: List[AnomalyEvent]) -> None:
        self._events = [e.model_copy(deep=True) for e in events]

    def load_history(self) -> List[AnomalyEvent]:
        return [e.model_copy(deep=True) for e in self._events]

    def clear_history(self) -> None:
        self._events = []


class JsonFileAnomalyStorage(BaseAnomalyStorage):
    """
    Stores history as a JSON array in a single file.

    Notes:
    - A missing file loads as empty history.
    - Writes go to a sibling temp file first, then replace the target.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding

    def save_history(self, events: List[AnomalyEvent]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_bytes(_HISTORY_ADAPTER.dump_json(events, indent=2))
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Failed to save anomaly history to {self.path}: {e}") from e
        logger.debug(f"Saved {len(events)} anomaly events to {self.path}")

    def load_history(self) -> List[AnomalyEvent]:
        if not self.path.exists():
            return []
        try:
            return _HISTORY_ADAPTER.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            raise StorageError(f"Failed to load anomaly history from {self.path}: {e}") from e

    def clear_history(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear anomaly history at {self.path}: {e}") from e
