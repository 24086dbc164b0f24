"""
Projects workspace.

Everyone sees the projects their role reaches; admins additionally create,
deactivate and re-schedule projects and manage who is assigned to them.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog

from timesheet_shared.access import count_projects, filter_projects, is_active, same_id, sort_by_name
from timesheet_shared.errors import TimesheetError, ValidationFault
from timesheet_shared.schemas.common import ActiveFilter, Scope, WeekStart
from timesheet_shared.schemas.profiles import ProfileRead
from timesheet_shared.schemas.projects import (
    MembershipRead,
    ProjectCounts,
    ProjectMemberRead,
    ProjectRead,
    validate_project_name,
)

from .workspace import Workspace

log = structlog.get_logger()


class ProjectsWorkspace(Workspace):
    def __init__(self, resolver, store):
        super().__init__(resolver, store)
        self.projects: list[ProjectRead] = []
        self.managed_profile_id: Optional[uuid.UUID] = None
        # project_id -> membership row of the managed profile
        self.assignments: dict[str, MembershipRead] = {}
        self.members: list[ProjectMemberRead] = []

    # --- Listing ---

    async def reload_projects(self, scope: Scope = Scope.ALL_ORG) -> list[ProjectRead]:
        self._reset()
        if self._require_profile() is None:
            self.projects = []
            return self.projects
        try:
            rows = await self._store.list_projects(scope)
        except TimesheetError as exc:
            self._fail(exc, "projects.reload")
            return self.projects
        self.projects = sort_by_name(rows)
        return self.projects

    def filtered_projects(
        self, query: str = "", active: ActiveFilter = ActiveFilter.ALL
    ) -> list[ProjectRead]:
        return filter_projects(self.projects, query, active)

    def counts(self) -> ProjectCounts:
        return count_projects(self.projects)

    def _replace(self, updated: ProjectRead) -> None:
        self.projects = [updated if same_id(p.id, updated.id) else p for p in self.projects]

    # --- Admin: projects ---

    async def create_project(
        self, name: str, week_start: WeekStart = WeekStart.SUNDAY
    ) -> Optional[ProjectRead]:
        self._reset()
        if self._require_admin() is None:
            return None

        valid, msg = validate_project_name(name)
        if not valid:
            self._fail(ValidationFault(msg), "projects.create")
            return None

        try:
            created = await self._store.create_project(name.strip(), week_start)
        except TimesheetError as exc:
            self._fail(exc, "projects.create")
            return None

        log.info("projects.created", project_id=str(created.id))
        await self.reload_projects()
        self.message = f"Created {created.name}."
        return created

    async def _update_project(self, project_id: uuid.UUID, operation: str, **fields: Any) -> Optional[ProjectRead]:
        self._reset()
        if self._require_admin() is None:
            return None
        self.busy_id = str(project_id)
        try:
            updated = await self._store.update_project(project_id, **fields)
        except TimesheetError as exc:
            self._fail(exc, operation)
            return None
        finally:
            self.busy_id = None
        self._replace(updated)
        return updated

    async def toggle_project_active(self, project_id: uuid.UUID, next_active: bool) -> Optional[ProjectRead]:
        return await self._update_project(project_id, "projects.toggle_active", is_active=next_active)

    async def update_week_start(self, project_id: uuid.UUID, week_start: WeekStart) -> Optional[ProjectRead]:
        return await self._update_project(project_id, "projects.week_start", week_start=week_start)

    # --- Admin: assignments ---

    async def load_assignments(self, profile_id: uuid.UUID) -> dict[str, MembershipRead]:
        self._reset()
        self.managed_profile_id = None
        self.assignments = {}
        if self._require_admin() is None:
            return self.assignments
        try:
            rows = await self._store.list_memberships(profile_id=profile_id)
        except TimesheetError as exc:
            self._fail(exc, "projects.load_assignments")
            return self.assignments
        self.managed_profile_id = profile_id
        self.assignments = {str(m.project_id): m for m in rows}
        return self.assignments

    def assigned_project_ids(self) -> set[str]:
        return {pid for pid, m in self.assignments.items() if m.active}

    async def toggle_assignment(self, project_id: uuid.UUID, assigned: bool) -> Optional[MembershipRead]:
        """Grant or revoke the managed profile's access to one project.

        An existing membership row is updated in place; otherwise a new row is
        inserted as active. Revoking with no row is a no-op.
        """
        self._reset()
        if self._require_admin() is None:
            return None
        if self.managed_profile_id is None:
            self.message = "Select a person first."
            return None

        key = str(project_id)
        existing = self.assignments.get(key)
        if existing is None and not assigned:
            return None

        self.busy_id = key
        try:
            if existing is not None:
                row = await self._store.update_membership(existing.id, assigned)
            else:
                row = await self._store.create_membership(project_id, self.managed_profile_id)
        except TimesheetError as exc:
            self._fail(exc, "projects.toggle_assignment")
            return None
        finally:
            self.busy_id = None

        self.assignments[key] = row
        log.info(
            "projects.assignment_changed",
            project_id=key,
            profile_id=str(self.managed_profile_id),
            assigned=row.active,
        )
        return row

    async def load_project_members(self, project_id: uuid.UUID) -> list[ProjectMemberRead]:
        self._reset()
        self.members = []
        if self._require_admin() is None:
            return self.members
        try:
            self.members = await self._store.list_project_members(project_id)
        except TimesheetError as exc:
            self._fail(exc, "projects.members")
        return self.members

    async def org_people(self) -> list[ProfileRead]:
        """Active org profiles, by name, for the assignment picker."""
        self._reset()
        if self._require_admin() is None:
            return []
        try:
            rows = await self._store.list_profiles(Scope.ALL_ORG)
        except TimesheetError as exc:
            self._fail(exc, "projects.org_people")
            return []
        return sort_by_name([p for p in rows if is_active(p)], key="full_name")
