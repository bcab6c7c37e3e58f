"""
Configuration for the anomaly lifecycle controller.

All settings are deterministic and cheap to evaluate per measurement batch.
"""

from __future__ import annotations

from pydantic import BaseModel


class LifecycleConfig(BaseModel):
    """
    Lifecycle controller behaviour.

    Notes:
    - skip_empty_epochs: epochs with no valid satellites are recorded as the
      current epoch but not fed to the detector (they would otherwise read
      as a 100% C/N0 drop).
    - notify_on_open: call the notifier once per newly opened event.
    - persist_on_change: save history to storage after every change.
    """

    skip_empty_epochs: bool = True
    notify_on_open: bool = True
    persist_on_change: bool = True
