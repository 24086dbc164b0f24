"""
People workspace.

Lists the profiles the acting role may see and edits them field by field.
Edits the policy would deny are refused locally, before any request.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog

from timesheet_shared.access import filter_profiles, same_id
from timesheet_shared.errors import TimesheetError, ValidationFault
from timesheet_shared.schemas.common import ActiveFilter, Role, Scope
from timesheet_shared.schemas.profiles import ProfileRead

from .workspace import Workspace

log = structlog.get_logger()


class PeopleWorkspace(Workspace):
    def __init__(self, resolver, store):
        super().__init__(resolver, store)
        self.rows: list[ProfileRead] = []

    async def load_rows(self, scope: Scope = Scope.VISIBLE) -> list[ProfileRead]:
        self._reset()
        if self._require_profile() is None:
            self.rows = []
            return self.rows
        try:
            self.rows = await self._store.list_profiles(scope)
        except TimesheetError as exc:
            self._fail(exc, "people.load")
            self.rows = []
        return self.rows

    def visible_rows(self, scope: Scope = Scope.VISIBLE) -> list[ProfileRead]:
        policy = self.policy
        if policy is None:
            return []
        return policy.visible_profiles(self.rows, scope)

    def filtered_rows(
        self,
        query: str = "",
        role: Optional[Role] = None,
        active: ActiveFilter = ActiveFilter.ALL,
        scope: Scope = Scope.VISIBLE,
    ) -> list[ProfileRead]:
        return filter_profiles(self.visible_rows(scope), query, role, active)

    def _row(self, profile_id: Any) -> Optional[ProfileRead]:
        for row in self.rows:
            if same_id(row.id, profile_id):
                return row
        return None

    def can_edit_row(self, profile_id: Any) -> bool:
        row = self._row(profile_id)
        policy = self.policy
        return row is not None and policy is not None and policy.can_edit_profile(row)

    def editable_fields(self, profile_id: Any) -> frozenset[str]:
        row = self._row(profile_id)
        policy = self.policy
        if row is None or policy is None:
            return frozenset()
        return policy.editable_profile_fields(row)

    def _replace(self, updated: ProfileRead) -> None:
        self.rows = [updated if same_id(r.id, updated.id) else r for r in self.rows]

    async def save_row(self, profile_id: uuid.UUID, patch: dict[str, Any]) -> Optional[ProfileRead]:
        """Write ``patch`` to one visible row. Returns the updated row or None."""
        self._reset()
        policy = self._require_profile()
        if policy is None:
            return None
        row = self._row(profile_id)
        if row is None:
            self.message = "Profile not found."
            return None

        denied = policy.denied_profile_fields(row, patch)
        if denied:
            self._fail(
                ValidationFault(f"Not permitted to change: {', '.join(sorted(denied))}"),
                "people.save_row",
            )
            return None

        self.busy_id = str(profile_id)
        try:
            updated = await self._store.update_profile(row.id, patch)
        except TimesheetError as exc:
            self._fail(exc, "people.save_row")
            return None
        finally:
            self.busy_id = None

        self._replace(updated)
        self.message = "Saved."
        log.info("people.row_saved", profile_id=str(profile_id), fields=sorted(patch))
        if policy.is_self(row):
            await self._resolver.refresh()
        return updated

    async def save_my_profile(self, patch: dict[str, Any]) -> Optional[ProfileRead]:
        """Save personal details on the acting profile, then re-resolve it."""
        self._reset()
        policy = self._require_profile()
        if policy is None:
            return None
        self.busy_id = str(policy.actor_id)
        try:
            updated = await self._store.update_my_profile(patch)
        except TimesheetError as exc:
            self._fail(exc, "people.save_my_profile")
            return None
        finally:
            self.busy_id = None

        self._replace(updated)
        self.message = "Saved."
        await self._resolver.refresh()
        return updated
