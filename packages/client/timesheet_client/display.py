"""Display sinks: where effective appearance preferences are applied."""

from __future__ import annotations

from typing import Protocol

import structlog

from timesheet_shared.preferences import UiPrefs

log = structlog.get_logger()


class DisplaySink(Protocol):
    def apply(self, prefs: UiPrefs) -> None: ...


class DatasetSink:
    """Mirrors a root element's ``data-accent/density/radius`` attributes."""

    def __init__(self) -> None:
        self.dataset: dict[str, str] = {}

    def apply(self, prefs: UiPrefs) -> None:
        values = prefs.as_dataset()
        if values != self.dataset:
            log.debug("display.prefs_applied", **values)
        self.dataset.update(values)
