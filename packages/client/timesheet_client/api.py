"""
HTTP access to the timesheet store.

Every failure leaves this module as a ``TimesheetError``: transport errors and
error statuses become ``QueryFault`` (``ProfileMissing`` for the own-profile
lookup), malformed payloads become ``QueryFault`` and bad request bodies become
``ValidationFault`` before anything is sent. Nothing is retried.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from timesheet_shared.errors import ProfileMissing, QueryFault, ValidationFault
from timesheet_shared.preferences import UiPrefs
from timesheet_shared.schemas.common import Scope, WeekStart
from timesheet_shared.schemas.profiles import (
    ProfileRead,
    ProfileSelfUpdate,
    ProfileUpdate,
    SessionRead,
    TokenResponse,
)
from timesheet_shared.schemas.projects import (
    MembershipRead,
    ProjectCreate,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)

log = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI validation errors
        return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
    return str(detail or f"HTTP {resp.status_code}")


def _body(model: type[M], values: dict[str, Any]) -> dict[str, Any]:
    unknown = set(values) - set(model.model_fields)
    if unknown:
        raise ValidationFault(f"Unknown fields: {', '.join(sorted(unknown))}")
    try:
        return model.model_validate(values).model_dump(mode="json", exclude_unset=True)
    except ValidationError as exc:
        raise ValidationFault(str(exc)) from exc


class StoreClient:
    """Thin async client for the store API. Holds the current bearer token."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        verify_tls: bool = True,
        request_timeout: int = 30,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._verify_tls = verify_tls
        self._request_timeout = request_timeout
        self._client = client
        self._owns_client = client is None
        self.token: Optional[str] = None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._request_timeout),
                verify=self._verify_tls,
            )

    async def close(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "StoreClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- Plumbing ---

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        if self._client is None:
            await self.open()
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        if params:
            params = {k: str(v.value if hasattr(v, "value") else v) for k, v in params.items() if v is not None}
        try:
            resp = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as exc:
            log.warning("store.request_failed", method=method, path=path, error=str(exc))
            raise QueryFault(f"Request failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _detail(resp)
            log.info("store.error_response", method=method, path=path, status=resp.status_code)
            raise QueryFault(detail, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as exc:
            raise QueryFault(f"Malformed response from {path}") from exc

    @staticmethod
    def _parse(model: Any, data: Any):
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as exc:
            raise QueryFault(f"Malformed response: {exc.error_count()} invalid field(s)") from exc

    # --- Auth ---

    async def login(self, email: str, password: str) -> TokenResponse:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self._parse(TokenResponse, data)

    async def refresh_token(self) -> TokenResponse:
        data = await self._request("POST", "/auth/refresh")
        return self._parse(TokenResponse, data)

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def get_session(self) -> SessionRead:
        data = await self._request("GET", "/auth/session")
        return self._parse(SessionRead, data)

    # --- Profiles ---

    async def fetch_my_profile(self) -> ProfileRead:
        try:
            data = await self._request("GET", "/api/v1/profiles/me")
        except QueryFault as exc:
            if exc.status_code == 404:
                raise ProfileMissing(exc.message) from exc
            raise
        return self._parse(ProfileRead, data)

    async def list_profiles(self, scope: Scope = Scope.VISIBLE) -> list[ProfileRead]:
        data = await self._request("GET", "/api/v1/profiles", params={"scope": scope})
        return self._parse(list[ProfileRead], data)

    async def update_profile(self, profile_id: uuid.UUID, patch: dict[str, Any]) -> ProfileRead:
        body = _body(ProfileUpdate, patch)
        data = await self._request("PATCH", f"/api/v1/profiles/{profile_id}", json=body)
        return self._parse(ProfileRead, data)

    async def update_my_profile(self, patch: dict[str, Any]) -> ProfileRead:
        body = _body(ProfileSelfUpdate, patch)
        data = await self._request("PATCH", "/api/v1/profiles/me", json=body)
        return self._parse(ProfileRead, data)

    async def save_ui_prefs(self, prefs: UiPrefs) -> ProfileRead:
        data = await self._request(
            "PUT", "/api/v1/profiles/me/ui-prefs", json={"ui_prefs": prefs.as_dataset()}
        )
        return self._parse(ProfileRead, data)

    # --- Projects ---

    async def list_projects(self, scope: Scope = Scope.ALL_ORG) -> list[ProjectRead]:
        data = await self._request("GET", "/api/v1/projects", params={"scope": scope})
        return self._parse(list[ProjectRead], data)

    async def create_project(self, name: str, week_start: WeekStart = WeekStart.SUNDAY) -> ProjectRead:
        body = _body(ProjectCreate, {"name": name, "week_start": week_start})
        data = await self._request("POST", "/api/v1/projects", json=body)
        return self._parse(ProjectRead, data)

    async def update_project(self, project_id: uuid.UUID, **fields: Any) -> ProjectRead:
        body = _body(ProjectUpdate, fields)
        data = await self._request("PATCH", f"/api/v1/projects/{project_id}", json=body)
        return self._parse(ProjectRead, data)

    async def list_project_members(self, project_id: uuid.UUID) -> list[ProjectMemberRead]:
        data = await self._request("GET", f"/api/v1/projects/{project_id}/members")
        return self._parse(list[ProjectMemberRead], data)

    # --- Memberships ---

    async def list_memberships(
        self,
        profile_id: Optional[uuid.UUID] = None,
        project_id: Optional[uuid.UUID] = None,
    ) -> list[MembershipRead]:
        data = await self._request(
            "GET",
            "/api/v1/memberships",
            params={"profile_id": profile_id, "project_id": project_id},
        )
        return self._parse(list[MembershipRead], data)

    async def create_membership(self, project_id: uuid.UUID, profile_id: uuid.UUID) -> MembershipRead:
        data = await self._request(
            "POST",
            "/api/v1/memberships",
            json={"project_id": str(project_id), "profile_id": str(profile_id)},
        )
        return self._parse(MembershipRead, data)

    async def update_membership(self, membership_id: uuid.UUID, is_active: bool) -> MembershipRead:
        data = await self._request(
            "PATCH", f"/api/v1/memberships/{membership_id}", json={"is_active": is_active}
        )
        return self._parse(MembershipRead, data)
