"""Shared test fixtures."""

import os
import tempfile
from collections.abc import Iterator
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


# Settings are cached on first use; set the environment before importing src
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="thub-test-logs-"))

from src.auth.dependencies import get_current_user  # noqa: E402
from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import UserResponse  # noqa: E402
from src.main import create_app  # noqa: E402


@pytest.fixture
def app() -> FastAPI:
    """Fresh application; the lifespan (Cassandra, Redis) is not started."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client without lifespan."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def student(student_id: UUID) -> UserResponse:
    return UserResponse(
        id=student_id, email="student@example.com", role=UserRole.STUDENT.value
    )


@pytest.fixture
def admin() -> UserResponse:
    return UserResponse(
        id=uuid4(), email="admin@example.com", role=UserRole.ADMIN.value
    )


@pytest.fixture
def as_student(app: FastAPI, student: UserResponse) -> UserResponse:
    """Authenticate every request as a student."""
    app.dependency_overrides[get_current_user] = lambda: student
    return student


@pytest.fixture
def as_admin(app: FastAPI, admin: UserResponse) -> UserResponse:
    """Authenticate every request as an admin."""
    app.dependency_overrides[get_current_user] = lambda: admin
    return admin
