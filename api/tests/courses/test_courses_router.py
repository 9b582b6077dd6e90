"""Tests for the /v1/courses endpoints."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.courses.dependencies import get_catalog_service
from src.courses.models import ContentType, Course, CourseModule, Section
from src.courses.service import (
    CatalogService,
    CatalogUnavailableError,
    SectionNotFoundError,
)


@pytest.fixture
def catalog_service() -> Mock:
    service = Mock(spec=CatalogService)
    for name in (
        "require_course",
        "get_course_outline",
        "create_course",
        "create_module",
        "create_section",
        "delete_section",
    ):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def api(app: FastAPI, client: TestClient, catalog_service: Mock) -> TestClient:
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    return client


class TestStudentEndpoints:
    def test_get_course(self, api, as_student, catalog_service) -> None:
        course = Course(title="Clinical Pharmacy")
        catalog_service.require_course.return_value = course

        response = api.get(f"/v1/courses/{course.id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Clinical Pharmacy"

    def test_outline(self, api, as_student, catalog_service) -> None:
        course_id = uuid4()
        module = CourseModule(course_id=course_id, title="Basics", position=1)
        in_module = Section(course_id=course_id, module_id=module.id, title="Intro")
        standalone = Section(
            course_id=course_id,
            title="Exam",
            section_type="exam",
            content_type=ContentType.TEXT.value,
        )
        catalog_service.get_course_outline.return_value = (
            [(module, [in_module])],
            [standalone],
        )

        response = api.get(f"/v1/courses/{course_id}/sections")

        assert response.status_code == 200
        data = response.json()
        assert data["total_sections"] == 2
        assert data["modules"][0]["sections"][0]["title"] == "Intro"
        assert data["standalone_sections"][0]["section_type"] == "exam"

    def test_student_cannot_add_section(
        self, api, as_student, catalog_service
    ) -> None:
        response = api.post(f"/v1/courses/{uuid4()}/sections", json={"title": "X"})

        assert response.status_code == 403
        catalog_service.create_section.assert_not_called()


class TestAdminEndpoints:
    def test_create_course(self, api, as_admin, catalog_service) -> None:
        catalog_service.create_course.return_value = Course(title="Toxicology")

        response = api.post("/v1/courses", json={"title": "Toxicology"})

        assert response.status_code == 201
        assert response.json()["title"] == "Toxicology"

    def test_create_video_section(self, api, as_admin, catalog_service) -> None:
        course_id = uuid4()
        catalog_service.create_section.return_value = Section(
            course_id=course_id,
            title="Lecture",
            content_type=ContentType.VIDEO.value,
            video_url="https://video.example.com/v.mp4",
        )

        response = api.post(
            f"/v1/courses/{course_id}/sections",
            json={
                "title": "Lecture",
                "content_type": "video",
                "video_url": "https://video.example.com/v.mp4",
            },
        )

        assert response.status_code == 201
        assert response.json()["content_type"] == "video"

    def test_delete_missing_section_is_404(
        self, api, as_admin, catalog_service
    ) -> None:
        catalog_service.delete_section.side_effect = SectionNotFoundError

        response = api.delete(f"/v1/courses/{uuid4()}/sections/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["message"] == "Section not found"

    def test_delete_section(self, api, as_admin, catalog_service) -> None:
        response = api.delete(f"/v1/courses/{uuid4()}/sections/{uuid4()}")

        assert response.status_code == 204


def test_catalog_outage_is_503(api, as_student, catalog_service) -> None:
    catalog_service.require_course.side_effect = CatalogUnavailableError

    response = api.get(f"/v1/courses/{uuid4()}")

    assert response.status_code == 503
    assert response.json()["message"] == "Course catalog unavailable"
