"""
Role-scoped visibility and authorization rules.

Pure functions of (role, acting profile, candidate records). The store service
applies them as its row-level policy layer and the client applies the same
rules to decide which controls are enabled, so the two never drift apart.

Rules:
- admin: every record in the org is visible and editable (full field set).
- manager: self plus direct reports (manager_id == self) are visible;
  reports expose only ``full_name`` for editing, self exposes personal fields.
- Appearance preferences (``ui_prefs``) are written only by their owner,
  through their own path rather than a profile patch.
- contractor (and any unknown role): only self, personal fields only.
- Privileged fields (role, hourly_rate, manager_id, is_active) are admin-only.
- A null ``is_active`` means active.

Decisions never raise; a denial is an empty capability.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Sequence, TypeVar

from .schemas.common import ActiveFilter, Role, Scope
from .schemas.projects import ProjectCounts

R = TypeVar("R")

PRIVILEGED_PROFILE_FIELDS = frozenset({"role", "hourly_rate", "manager_id", "is_active"})
PERSONAL_PROFILE_FIELDS = frozenset({"full_name", "phone", "address", "avatar_url"})
TEAM_PROFILE_FIELDS = frozenset({"full_name"})
ALL_PROFILE_FIELDS = PRIVILEGED_PROFILE_FIELDS | PERSONAL_PROFILE_FIELDS

NO_NAME = "(no name)"


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------

def field(record: Any, name: str) -> Any:
    """Read a field from a mapping row or an attribute-style model."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def same_id(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


def coerce_role(value: Any) -> Role:
    """Map a stored role to ``Role``; anything unrecognised is non-privileged."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return Role.CONTRACTOR


def is_active(record: Any) -> bool:
    return field(record, "is_active") is not False


def display_name(record: Any) -> str:
    return (field(record, "full_name") or "").strip() or NO_NAME


def matches_query(query: str, *parts: Any) -> bool:
    """Case-insensitive substring match over the parts; empty query matches all."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    haystack = " ".join("" if p is None else str(p) for p in parts).lower()
    return needle in haystack


def _matches_active(record: Any, active: ActiveFilter) -> bool:
    if active == ActiveFilter.ACTIVE:
        return is_active(record)
    if active == ActiveFilter.INACTIVE:
        return not is_active(record)
    return True


# ---------------------------------------------------------------------------
# Filters (presentation narrowing, applied after authorization)
# ---------------------------------------------------------------------------

def filter_profiles(
    records: Iterable[R],
    query: str = "",
    role: Optional[Role] = None,
    active: ActiveFilter = ActiveFilter.ALL,
) -> list[R]:
    results = []
    for r in records:
        r_role = coerce_role(field(r, "role"))
        if role is not None and r_role != role:
            continue
        if not _matches_active(r, active):
            continue
        if not matches_query(query, display_name(r), r_role.value, field(r, "id")):
            continue
        results.append(r)
    return results


def filter_projects(
    records: Iterable[R],
    query: str = "",
    active: ActiveFilter = ActiveFilter.ALL,
) -> list[R]:
    return [
        p
        for p in records
        if _matches_active(p, active)
        and matches_query(query, field(p, "name"), field(p, "id"))
    ]


def count_projects(records: Iterable[Any]) -> ProjectCounts:
    total = active = 0
    for p in records:
        total += 1
        if is_active(p):
            active += 1
    return ProjectCounts(total=total, active=active, inactive=total - active)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

class AccessPolicy:
    """Authorization decisions for one acting profile."""

    def __init__(self, role: Any, actor_id: Any, org_id: Any = None):
        self.role = coerce_role(role)
        self.actor_id = actor_id
        self.org_id = org_id

    @classmethod
    def for_profile(cls, profile: Any) -> "AccessPolicy":
        return cls(field(profile, "role"), field(profile, "id"), field(profile, "org_id"))

    def __repr__(self) -> str:
        return f"AccessPolicy(role={self.role.value!r}, actor_id={str(self.actor_id)!r})"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_manager_or_admin(self) -> bool:
        return self.role in (Role.ADMIN, Role.MANAGER)

    def in_org(self, record: Any) -> bool:
        # Without a known org the caller already scoped the query.
        if self.org_id is None:
            return True
        return same_id(field(record, "org_id"), self.org_id)

    def is_self(self, record: Any) -> bool:
        return same_id(field(record, "id"), self.actor_id)

    # --- Profiles ---

    def can_view_profile(self, record: Any) -> bool:
        if self.is_self(record):
            return True
        if not self.in_org(record):
            return False
        if self.is_admin:
            return True
        if self.is_manager:
            return same_id(field(record, "manager_id"), self.actor_id)
        return False

    def visible_profiles(self, records: Iterable[R], scope: Scope = Scope.VISIBLE) -> list[R]:
        # Admin already sees the whole org, so ``scope`` only matters for
        # callers that pass it through from a query string.
        return [r for r in records if self.can_view_profile(r)]

    def editable_profile_fields(self, record: Any) -> frozenset[str]:
        if not self.can_view_profile(record):
            return frozenset()
        if self.is_admin:
            return ALL_PROFILE_FIELDS
        if self.is_self(record):
            return PERSONAL_PROFILE_FIELDS
        if self.is_manager:
            return TEAM_PROFILE_FIELDS
        return frozenset()

    def can_edit_profile(self, record: Any) -> bool:
        return bool(self.editable_profile_fields(record))

    def denied_profile_fields(self, record: Any, fields: Iterable[str]) -> frozenset[str]:
        """Fields in ``fields`` this actor may not write on ``record``."""
        return frozenset(fields) - self.editable_profile_fields(record)

    def can_save_prefs(self, record: Any) -> bool:
        return self.is_self(record)

    # --- Projects ---

    @property
    def can_manage_projects(self) -> bool:
        return self.is_admin

    def can_view_all_projects(self, scope: Scope = Scope.ALL_ORG) -> bool:
        return self.is_manager_or_admin and scope == Scope.ALL_ORG

    def reachable_project_ids(self, memberships: Iterable[Any]) -> set[str]:
        return {
            str(field(m, "project_id"))
            for m in memberships
            if same_id(field(m, "profile_id"), self.actor_id)
            and is_active(m)
            and self.in_org(m)
        }

    def visible_projects(
        self,
        projects: Iterable[R],
        memberships: Iterable[Any] = (),
        scope: Scope = Scope.ALL_ORG,
    ) -> list[R]:
        in_org = [p for p in projects if self.in_org(p)]
        if self.can_view_all_projects(scope):
            return in_org
        reachable = self.reachable_project_ids(memberships)
        return [p for p in in_org if str(field(p, "id")) in reachable]

    # --- Memberships ---

    @property
    def can_manage_memberships(self) -> bool:
        return self.is_admin

    def can_view_membership(self, membership: Any) -> bool:
        if not self.in_org(membership):
            return False
        return self.is_admin or same_id(field(membership, "profile_id"), self.actor_id)

    def visible_memberships(self, memberships: Iterable[R]) -> list[R]:
        return [m for m in memberships if self.can_view_membership(m)]


def sort_by_name(records: Sequence[R], key: str = "name") -> list[R]:
    return sorted(records, key=lambda r: (field(r, key) or "").lower())
