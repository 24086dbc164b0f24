"""
Integration tests for Project endpoints.

Tests cover:
- Project name validation
- Listing per role and scope
- Admin-only create / deactivate / week start
- Member listing
"""

from __future__ import annotations

import pytest

from timesheet_shared.schemas.common import WeekStart
from timesheet_shared.schemas.projects import validate_project_name, week_start_label


# ---------------------------------------------------------------------------
# Unit tests for name validation
# ---------------------------------------------------------------------------


class TestProjectName:
    def test_too_short(self):
        valid, msg = validate_project_name("A")
        assert not valid
        assert msg == "Project name must be at least 2 characters."

    def test_whitespace_does_not_count(self):
        assert not validate_project_name("  A  ")[0]
        assert not validate_project_name(None)[0]

    def test_two_characters_ok(self):
        assert validate_project_name("AB") == (True, "")

    def test_week_start_labels(self):
        assert week_start_label(WeekStart.MONDAY) == "Week starts Monday"
        assert week_start_label(None) == "Week starts Sunday"


# ---------------------------------------------------------------------------
# Integration tests
# ---------------------------------------------------------------------------


def names(resp):
    return [p["name"] for p in resp.json()]


class TestListProjects:
    @pytest.mark.asyncio
    async def test_admin_sees_org_projects_sorted(self, http, seed, auth_headers):
        resp = await http.get("/api/v1/projects", headers=auth_headers(seed.admin.id))
        assert resp.status_code == 200
        assert names(resp) == ["Apollo", "Borealis"]

    @pytest.mark.asyncio
    async def test_manager_sees_org_projects(self, http, seed, auth_headers):
        resp = await http.get("/api/v1/projects", headers=auth_headers(seed.manager.id))
        assert names(resp) == ["Apollo", "Borealis"]

    @pytest.mark.asyncio
    async def test_manager_visible_scope_narrows(self, http, seed, auth_headers):
        resp = await http.get("/api/v1/projects?scope=visible", headers=auth_headers(seed.manager.id))
        assert names(resp) == []

    @pytest.mark.asyncio
    async def test_contractor_sees_active_memberships_only(self, http, seed, auth_headers):
        resp = await http.get("/api/v1/projects", headers=auth_headers(seed.contractor.id))
        assert names(resp) == ["Apollo"]

    @pytest.mark.asyncio
    async def test_contractor_without_memberships_sees_nothing(self, http, seed, auth_headers):
        resp = await http.get("/api/v1/projects", headers=auth_headers(seed.report.id))
        assert resp.json() == []


class TestCreateProject:
    @pytest.mark.asyncio
    async def test_admin_creates(self, http, seed, auth_headers):
        resp = await http.post(
            "/api/v1/projects",
            json={"name": "  Cygnus  ", "week_start": "monday"},
            headers=auth_headers(seed.admin.id),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Cygnus"
        assert data["week_start"] == "monday"
        assert data["is_active"] is True
        assert data["org_id"] == str(seed.admin.org_id)

    @pytest.mark.asyncio
    async def test_default_week_start(self, http, seed, auth_headers):
        resp = await http.post("/api/v1/projects", json={"name": "Dorado"}, headers=auth_headers(seed.admin.id))
        assert resp.json()["week_start"] == "sunday"

    @pytest.mark.asyncio
    async def test_short_name_rejected(self, http, seed, auth_headers):
        resp = await http.post("/api/v1/projects", json={"name": "A"}, headers=auth_headers(seed.admin.id))
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_manager_cannot_create(self, http, seed, auth_headers):
        resp = await http.post("/api/v1/projects", json={"name": "Nope"}, headers=auth_headers(seed.manager.id))
        assert resp.status_code == 403


class TestUpdateProject:
    @pytest.mark.asyncio
    async def test_deactivate_and_week_start(self, http, seed, auth_headers):
        headers = auth_headers(seed.admin.id)
        resp = await http.patch(f"/api/v1/projects/{seed.apollo.id}", json={"is_active": False}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        resp = await http.patch(f"/api/v1/projects/{seed.apollo.id}", json={"week_start": "monday"}, headers=headers)
        assert resp.json()["week_start"] == "monday"
        assert resp.json()["is_active"] is False

    @pytest.mark.asyncio
    async def test_other_org_project_not_found(self, http, seed, auth_headers):
        resp = await http.patch(
            f"/api/v1/projects/{seed.xenon.id}", json={"is_active": False}, headers=auth_headers(seed.admin.id)
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_contractor_cannot_update(self, http, seed, auth_headers):
        resp = await http.patch(
            f"/api/v1/projects/{seed.apollo.id}", json={"is_active": False}, headers=auth_headers(seed.contractor.id)
        )
        assert resp.status_code == 403


class TestProjectMembers:
    @pytest.mark.asyncio
    async def test_lists_active_members_with_names(self, http, seed, auth_headers):
        headers = auth_headers(seed.admin.id)
        resp = await http.get(f"/api/v1/projects/{seed.apollo.id}/members", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == [
            {"profile_id": str(seed.contractor.id), "full_name": "Carl Contractor", "role": "contractor"}
        ]

        resp = await http.get(f"/api/v1/projects/{seed.borealis.id}/members", headers=headers)
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_manager_forbidden(self, http, seed, auth_headers):
        resp = await http.get(f"/api/v1/projects/{seed.apollo.id}/members", headers=auth_headers(seed.manager.id))
        assert resp.status_code == 403
