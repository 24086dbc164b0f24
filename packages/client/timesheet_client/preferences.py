"""
Preference reconciliation.

Effective appearance is derived, never stored as truth: remote profile value
if it says anything non-default, else the local cache, else defaults. The
reconciler is the only writer of the cache key.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from timesheet_shared.errors import QueryFault
from timesheet_shared.preferences import (
    DEFAULT_PREFS,
    UiPrefs,
    is_default_prefs,
    normalize_prefs,
    serialize_prefs,
)

from .api import StoreClient
from .cache import LEGACY_PREFS_KEY, PREFS_KEY, LocalCache
from .display import DisplaySink
from .resolver import ProfileResolver, ProfileState, ResolverStatus

log = structlog.get_logger()


def reconcile_prefs(remote: Any, local: Any) -> UiPrefs:
    """Pick the effective preferences from a remote blob and a cached blob."""
    remote_prefs = normalize_prefs(remote)
    if not is_default_prefs(remote_prefs):
        return remote_prefs
    if local is not None:
        return normalize_prefs(local)
    return DEFAULT_PREFS


class PreferenceReconciler:
    def __init__(self, cache: LocalCache, sink: DisplaySink, store: StoreClient):
        self._cache = cache
        self._sink = sink
        self._store = store
        self._effective: UiPrefs = DEFAULT_PREFS

    @property
    def effective(self) -> UiPrefs:
        return self._effective

    async def read_local(self) -> Optional[str]:
        value = await self._cache.get(PREFS_KEY)
        if value is None:
            value = await self._cache.get(LEGACY_PREFS_KEY)
            if value is not None:
                log.debug("prefs.legacy_cache_read")
        return value

    async def _apply(self, prefs: UiPrefs) -> UiPrefs:
        self._sink.apply(prefs)
        await self._cache.set(PREFS_KEY, serialize_prefs(prefs))
        self._effective = prefs
        return prefs

    async def reconcile(self, remote: Any = None) -> UiPrefs:
        effective = reconcile_prefs(remote, await self.read_local())
        if effective != self._effective:
            log.info("prefs.reconciled", **effective.as_dataset())
        return await self._apply(effective)

    async def bootstrap(self) -> UiPrefs:
        """Apply cached preferences before any profile is available."""
        return await self.reconcile(None)

    async def on_profile_state(self, state: ProfileState) -> None:
        if state.status != ResolverStatus.READY or state.profile is None:
            return
        await self.reconcile(state.profile.ui_prefs)

    async def save(self, prefs: Any, resolver: Optional[ProfileResolver] = None) -> UiPrefs:
        """Persist to the profile, then apply locally.

        Raises QueryFault when the remote write fails; the prior effective
        value stays applied and the cache is untouched.
        """
        normalized = normalize_prefs(prefs)
        try:
            await self._store.save_ui_prefs(normalized)
        except QueryFault:
            log.warning("prefs.save_failed", **normalized.as_dataset())
            raise
        await self._apply(normalized)
        log.info("prefs.saved", **normalized.as_dataset())
        if resolver is not None:
            await resolver.refresh()
        return normalized
