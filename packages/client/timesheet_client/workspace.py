"""Common state for the page-level workspaces."""

from __future__ import annotations

from typing import Optional

import structlog

from timesheet_shared.access import AccessPolicy
from timesheet_shared.errors import TimesheetError
from timesheet_shared.schemas.profiles import ProfileRead

from .api import StoreClient
from .resolver import ProfileResolver

log = structlog.get_logger()

NO_PROFILE_MESSAGE = "Profile could not be loaded."
ADMIN_ONLY_MESSAGE = "Admin access required."


class Workspace:
    """Operation boundary: every ``TimesheetError`` ends up in ``message``."""

    def __init__(self, resolver: ProfileResolver, store: StoreClient):
        self._resolver = resolver
        self._store = store
        self.message: str = ""
        self.error: Optional[TimesheetError] = None
        self.busy_id: Optional[str] = None

    @property
    def profile(self) -> Optional[ProfileRead]:
        return self._resolver.state.profile

    @property
    def policy(self) -> Optional[AccessPolicy]:
        profile = self.profile
        return AccessPolicy.for_profile(profile) if profile is not None else None

    def _reset(self) -> None:
        self.message = ""
        self.error = None

    def _fail(self, exc: TimesheetError, operation: str) -> None:
        log.warning("workspace.operation_failed", operation=operation, kind=exc.kind, error=exc.message)
        self.error = exc
        self.message = exc.message

    def _require_profile(self) -> Optional[AccessPolicy]:
        policy = self.policy
        if policy is None:
            self.message = self._resolver.state.error or NO_PROFILE_MESSAGE
        return policy

    def _require_admin(self) -> Optional[AccessPolicy]:
        policy = self._require_profile()
        if policy is not None and not policy.is_admin:
            self.message = ADMIN_ONLY_MESSAGE
            return None
        return policy
