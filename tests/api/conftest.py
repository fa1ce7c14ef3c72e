"""HTTP-level fixtures: the app wired to in-memory services."""

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_identity_service, get_project_service
from app.core.auth import create_access_token
from app.main import app
from app.services.upload_service import UploadService, get_upload_service

UPLOADED_URL = "https://res.cloudinary.com/demo-cloud/image/upload/v1/file"


@pytest.fixture
def uploader():
    """Real UploadService with the Cloudinary call replaced."""
    return UploadService(uploader=lambda path, **options: {"secure_url": UPLOADED_URL})


@pytest.fixture
def client(identity, projects, uploader):
    # No context manager: the lifespan would try to reach a real MongoDB
    app.dependency_overrides[get_identity_service] = lambda: identity
    app.dependency_overrides[get_project_service] = lambda: projects
    app.dependency_overrides[get_upload_service] = lambda: uploader
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(principal) -> dict:
    token = create_access_token(principal.id, principal.kind.value, principal.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return bearer
