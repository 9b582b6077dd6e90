"""Tests for ProgressApiClient over httpx.MockTransport."""

import json
from uuid import uuid4

import httpx
import pytest

from src.client.transport import ProgressApiClient, ProgressClientError


def make_client(handler, token: str | None = "token-123") -> ProgressApiClient:
    http = httpx.AsyncClient(
        base_url="http://api.test", transport=httpx.MockTransport(handler)
    )
    return ProgressApiClient(http, access_token=token)


class TestRequests:
    @pytest.mark.asyncio
    async def test_update_progress_body_and_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"is_completed": False})

        course_id, section_id = uuid4(), uuid4()
        client = make_client(handler)

        data = await client.update_progress(course_id, section_id, 55.5, 30)

        assert data == {"is_completed": False}
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/progress/update"
        assert request.headers["Authorization"] == "Bearer token-123"
        assert json.loads(request.content) == {
            "course_id": str(course_id),
            "section_id": str(section_id),
            "last_position": 55.5,
            "time_spent": 30,
            "ended": False,
        }

    @pytest.mark.asyncio
    async def test_section_progress_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"completed": False})

        course_id, section_id = uuid4(), uuid4()
        client = make_client(handler, token=None)

        await client.get_section_progress(course_id, section_id)

        assert seen[0].url.path == f"/v1/progress/section/{section_id}"
        assert seen[0].url.params["course_id"] == str(course_id)
        assert "Authorization" not in seen[0].headers


class TestErrors:
    @pytest.mark.asyncio
    async def test_error_status_carries_api_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404, json={"error": "not_found", "message": "Section not found"}
            )

        client = make_client(handler)

        with pytest.raises(ProgressClientError) as exc_info:
            await client.complete_section(uuid4(), uuid4())

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Section not found"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        client = make_client(handler)

        with pytest.raises(ProgressClientError) as exc_info:
            await client.get_course_progress(uuid4())

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_non_json_success_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>Sign in to Wi-Fi</html>")

        client = make_client(handler)

        with pytest.raises(ProgressClientError) as exc_info:
            await client.update_progress(uuid4(), uuid4(), 10.0, 30)

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_network_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(ProgressClientError) as exc_info:
            await client.update_progress(uuid4(), uuid4(), 10.0, 30)

        assert exc_info.value.status_code is None
