"""Shared test fixtures: settings, in-memory MongoDB, services, principals."""

import os

# Settings has no default token secrets; provide test ones before any app import
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "key-123")
os.environ.setdefault("CLOUDINARY_API_SECRET", "secret-456")

from datetime import datetime, timezone

import mongomock
import pytest

from app.core.authorization import Principal
from app.schemas.schemas import PrincipalKind
from app.services.identity_service import IdentityService
from app.services.project_service import ProjectService


@pytest.fixture
def mongo_db():
    """Fresh in-memory database per test."""
    client = mongomock.MongoClient()
    yield client["campus_marketplace_test"]
    client.close()


@pytest.fixture
def identity(mongo_db):
    return IdentityService(students=mongo_db["students"], startups=mongo_db["startups"])


@pytest.fixture
def projects(mongo_db, identity):
    return ProjectService(projects=mongo_db["projects"], identity=identity)


def _insert_principal(mongo_db, kind: PrincipalKind, **fields) -> Principal:
    collection = mongo_db["students" if kind == PrincipalKind.student else "startups"]
    now = datetime.now(timezone.utc)
    doc = {"role": kind.value, "createdAt": now, "updatedAt": now, **fields}
    if kind == PrincipalKind.startup:
        doc.setdefault("postedProjects", [])
    result = collection.insert_one(doc)
    doc["_id"] = result.inserted_id
    return Principal(id=str(result.inserted_id), kind=kind, email=fields.get("email", ""), profile=doc)


@pytest.fixture
def startup_x(mongo_db):
    return _insert_principal(
        mongo_db, PrincipalKind.startup,
        email="x@startup.io", name="Startup X", founderName="Xena", description="We build X",
    )


@pytest.fixture
def startup_y(mongo_db):
    return _insert_principal(
        mongo_db, PrincipalKind.startup,
        email="y@startup.io", name="Startup Y", founderName="Yuri", description="We build Y",
    )


@pytest.fixture
def student_a(mongo_db):
    return _insert_principal(
        mongo_db, PrincipalKind.student,
        email="a@campus.edu", name="Student A", year=2, department="CSE", skills=["react"],
    )


@pytest.fixture
def student_b(mongo_db):
    return _insert_principal(
        mongo_db, PrincipalKind.student,
        email="b@campus.edu", name="Student B", year=3, department="ECE", skills=[],
    )


@pytest.fixture
def landing_page(projects, startup_x):
    """Startup X's 'Build landing page' project, stipend 5000, no deadline."""
    return projects.create(startup_x, {
        "title": "Build landing page",
        "description": "Marketing site for our launch",
        "stipend": 5000,
    })
