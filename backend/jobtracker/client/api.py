"""
Tracker API Client - async HTTP access to the tracker service

Thin wrapper over httpx.AsyncClient. Every non-2xx response and every
transport failure is raised as TrackerAPIError carrying the server's
``error`` / ``detail`` message, so UI-state code has one exception to catch.

Usage:
    async with TrackerClient("http://localhost:8000", token=token) as api:
        records = await api.list_applications()
"""

import logging
from datetime import date
from typing import Any, List, Optional

import httpx

from jobtracker.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    ExternalJob,
    NoteResponse,
    NotificationResponse,
    ProfileResponse,
)

logger = logging.getLogger(__name__)

SEARCH_ENDPOINTS = {
    "serpapi": "/functions/job-search",
    "adzuna": "/functions/adzuna-search",
    "remoteok": "/functions/remoteok-search",
}


class TrackerAPIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("error") or body.get("detail")
        if detail:
            return detail if isinstance(detail, str) else str(detail)
    return f"HTTP {response.status_code}"


class TrackerClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "TrackerClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TrackerAPIError(f"Network error: {e}") from e

        if response.status_code >= 400:
            raise TrackerAPIError(_error_message(response), status_code=response.status_code)
        return response

    # ==================== Session ====================

    async def get_session(self) -> Optional[dict]:
        """Current session, or None when signed out."""
        try:
            response = await self._request("GET", "/auth/session")
        except TrackerAPIError as e:
            if e.status_code == 401:
                return None
            raise
        return response.json()

    async def refresh_session(self) -> dict:
        return (await self._request("POST", "/auth/refresh")).json()

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    def authorize_url(self, provider: str) -> str:
        return f"{self.base_url}/auth/{provider}/authorize"

    # ==================== Applications ====================

    async def list_applications(self) -> List[ApplicationResponse]:
        response = await self._request("GET", "/applications")
        return [ApplicationResponse.model_validate(item) for item in response.json()]

    async def get_application(self, application_id: str) -> ApplicationResponse:
        response = await self._request("GET", f"/applications/{application_id}")
        return ApplicationResponse.model_validate(response.json())

    async def create_application(self, **fields: Any) -> ApplicationResponse:
        payload = ApplicationCreate(**fields).model_dump(mode="json", exclude_unset=True)
        response = await self._request("POST", "/applications", json=payload)
        return ApplicationResponse.model_validate(response.json())

    async def update_application(self, application_id: str, **changes: Any) -> ApplicationResponse:
        payload = ApplicationUpdate(**changes).model_dump(mode="json", exclude_unset=True)
        response = await self._request("PATCH", f"/applications/{application_id}", json=payload)
        return ApplicationResponse.model_validate(response.json())

    async def delete_application(self, application_id: str) -> None:
        await self._request("DELETE", f"/applications/{application_id}")

    async def request_match_analysis(self, application_id: str) -> None:
        await self._request("POST", f"/applications/{application_id}/analyze")

    async def export_csv(self) -> str:
        return (await self._request("GET", "/applications/export.csv")).text

    async def get_stats(self) -> dict:
        return (await self._request("GET", "/stats")).json()

    # ==================== Notes ====================

    async def list_notes(self, application_id: str) -> List[NoteResponse]:
        response = await self._request("GET", f"/applications/{application_id}/notes")
        return [NoteResponse.model_validate(item) for item in response.json()]

    async def add_note(
        self, application_id: str, content: str, reminder_date: Optional[date] = None
    ) -> NoteResponse:
        payload = {
            "content": content,
            "reminder_date": reminder_date.isoformat() if reminder_date else None,
        }
        response = await self._request("POST", f"/applications/{application_id}/notes", json=payload)
        return NoteResponse.model_validate(response.json())

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"/notes/{note_id}")

    # ==================== Notifications ====================

    async def list_notifications(self) -> List[NotificationResponse]:
        response = await self._request("GET", "/notifications")
        return [NotificationResponse.model_validate(item) for item in response.json()]

    async def mark_notification_read(self, notification_id: str) -> NotificationResponse:
        response = await self._request("PATCH", f"/notifications/{notification_id}/read")
        return NotificationResponse.model_validate(response.json())

    async def mark_all_notifications_read(self) -> None:
        await self._request("POST", "/notifications/read-all")

    # ==================== Profile ====================

    async def get_profile(self) -> ProfileResponse:
        return ProfileResponse.model_validate((await self._request("GET", "/profile")).json())

    async def update_profile(self, full_name: str) -> ProfileResponse:
        response = await self._request("PUT", "/profile", json={"full_name": full_name})
        return ProfileResponse.model_validate(response.json())

    async def upload_avatar(self, filename: str, data: bytes, content_type: str) -> ProfileResponse:
        files = {"file": (filename, data, content_type)}
        response = await self._request("POST", "/profile/avatar", files=files)
        return ProfileResponse.model_validate(response.json())

    async def avatar_url(self) -> str:
        return (await self._request("GET", "/profile/avatar-url")).json()["signed_url"]

    async def upload_resume(self, filename: str, data: bytes) -> ProfileResponse:
        files = {"file": (filename, data, "application/octet-stream")}
        response = await self._request("POST", "/profile/resume", files=files)
        return ProfileResponse.model_validate(response.json())

    async def download_resume(self) -> bytes:
        return (await self._request("GET", "/profile/resume")).content

    # ==================== Functions ====================

    async def search_jobs(
        self, search_term: str, source: str = "serpapi", engine: Optional[str] = None
    ) -> List[ExternalJob]:
        if source not in SEARCH_ENDPOINTS:
            raise TrackerAPIError(f"Unknown search source: {source}")
        payload = {"searchTerm": search_term}
        if engine:
            payload["engine"] = engine
        response = await self._request("POST", SEARCH_ENDPOINTS[source], json=payload)
        return [ExternalJob.model_validate(item) for item in response.json().get("jobs", [])]

    async def analyze_resume(self) -> dict:
        return (await self._request("POST", "/functions/analyze-resume")).json()["analysis"]

    async def match_job(self, application_id: str) -> dict:
        response = await self._request(
            "POST", "/functions/job-matcher", json={"applicationId": application_id}
        )
        return response.json()["analysis"]
