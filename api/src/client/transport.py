"""HTTP transport from the client reporter to the progress API."""

from typing import Any, Protocol
from uuid import UUID

import httpx
import structlog


logger = structlog.get_logger(__name__)


class ProgressClientError(Exception):
    """Progress API call failed (HTTP error status or network failure)."""

    def __init__(self, status_code: int | None, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class ProgressTransport(Protocol):
    """What the reporter needs from the server side."""

    async def update_progress(
        self,
        course_id: UUID,
        section_id: UUID,
        last_position: float,
        time_spent: int,
        ended: bool = False,
    ) -> dict[str, Any]: ...

    async def complete_section(
        self, course_id: UUID, section_id: UUID
    ) -> dict[str, Any]: ...


class ProgressApiClient:
    """httpx client for the ``/v1/progress`` endpoints.

    Example:
        async with httpx.AsyncClient(base_url=api_url) as http:
            client = ProgressApiClient(http, access_token=token)
            summary = await client.get_course_progress(course_id)
    """

    def __init__(self, http: httpx.AsyncClient, access_token: str | None = None):
        self.http = http
        self.access_token = access_token

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self.http.request(
                method, path, json=json, params=params, headers=self._headers()
            )
        except httpx.TimeoutException as e:
            logger.warning("progress_api_timeout", path=path, error=str(e))
            raise ProgressClientError(None, "Progress API timeout") from e
        except httpx.RequestError as e:
            logger.warning("progress_api_request_error", path=path, error=str(e))
            raise ProgressClientError(None, f"Progress API request error: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise ProgressClientError(response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            logger.warning(
                "progress_api_invalid_response",
                path=path,
                status_code=response.status_code,
            )
            raise ProgressClientError(
                response.status_code, "Progress API returned a non-JSON response"
            ) from e

    async def update_progress(
        self,
        course_id: UUID,
        section_id: UUID,
        last_position: float,
        time_spent: int,
        ended: bool = False,
    ) -> dict[str, Any]:
        """POST /v1/progress/update"""
        return await self._request(
            "POST",
            "/v1/progress/update",
            json={
                "course_id": str(course_id),
                "section_id": str(section_id),
                "last_position": last_position,
                "time_spent": time_spent,
                "ended": ended,
            },
        )

    async def complete_section(
        self, course_id: UUID, section_id: UUID
    ) -> dict[str, Any]:
        """POST /v1/progress/complete-section"""
        return await self._request(
            "POST",
            "/v1/progress/complete-section",
            json={"course_id": str(course_id), "section_id": str(section_id)},
        )

    async def get_course_progress(self, course_id: UUID) -> dict[str, Any]:
        """GET /v1/progress/course/{course_id}"""
        return await self._request("GET", f"/v1/progress/course/{course_id}")

    async def get_section_progress(
        self, course_id: UUID, section_id: UUID
    ) -> dict[str, Any]:
        """GET /v1/progress/section/{section_id}"""
        return await self._request(
            "GET",
            f"/v1/progress/section/{section_id}",
            params={"course_id": str(course_id)},
        )
