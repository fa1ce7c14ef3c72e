"""Tests for ProjectService against an in-memory MongoDB."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from bson import Binary, ObjectId
from pymongo.errors import PyMongoError

from app.core.errors import Conflict, Forbidden, InternalError, InvalidInput, NotFound, Unauthenticated

pytestmark = pytest.mark.unit


def _stored(mongo_db, project):
    return mongo_db["projects"].find_one({"_id": ObjectId(str(project["_id"]))})


class TestCreate:
    def test_defaults(self, mongo_db, landing_page, startup_x):
        stored = _stored(mongo_db, landing_page)

        assert stored["status"] == "open"
        assert stored["applicants"] == []
        assert stored["selectedStudents"] == []
        assert stored["stipend"] == 5000
        assert stored["startup"] == ObjectId(startup_x.id)
        assert "deadline" not in stored
        assert "duration" not in stored

    def test_pushes_onto_owner_posted_list(self, mongo_db, landing_page, startup_x):
        owner = mongo_db["startups"].find_one({"_id": ObjectId(startup_x.id)})
        assert owner["postedProjects"] == [landing_page["_id"]]

    def test_returns_populated_owner_without_credentials(self, landing_page):
        assert landing_page["startup"]["name"] == "Startup X"
        assert "password" not in landing_page["startup"]

    def test_keeps_future_deadline_and_trimmed_duration(self, mongo_db, projects, startup_x):
        deadline = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
        project = projects.create(startup_x, {
            "title": "API", "description": "REST API", "stipend": 0,
            "duration": " 2 months ", "deadline": deadline,
        })
        stored = _stored(mongo_db, project)
        assert stored["duration"] == "2 months"
        assert stored["deadline"] is not None

    def test_past_deadline_rejected_without_write(self, mongo_db, projects, startup_x):
        deadline = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        with pytest.raises(InvalidInput):
            projects.create(startup_x, {"title": "T", "description": "D", "stipend": 1, "deadline": deadline})
        assert mongo_db["projects"].count_documents({}) == 0

    def test_student_cannot_create(self, projects, student_a):
        with pytest.raises(Forbidden):
            projects.create(student_a, {"title": "T", "description": "D", "stipend": 1})

    def test_unauthenticated_cannot_create(self, projects):
        with pytest.raises(Unauthenticated):
            projects.create(None, {"title": "T", "description": "D", "stipend": 1})

    def test_owner_list_failure_keeps_project_and_reports_internal(self, mongo_db, projects, startup_x):
        with patch.object(projects.identity, "push_posted_project", side_effect=PyMongoError("down")):
            with pytest.raises(InternalError):
                projects.create(startup_x, {"title": "T", "description": "D", "stipend": 1})

        assert mongo_db["projects"].count_documents({}) == 1
        owner = mongo_db["startups"].find_one({"_id": ObjectId(startup_x.id)})
        assert owner["postedProjects"] == []


class TestUpdate:
    def test_patches_whitelisted_fields(self, mongo_db, projects, landing_page, startup_x):
        updated = projects.update(startup_x, landing_page["_id"], {
            "title": " New title ", "status": "in-progress", "startup": str(ObjectId()),
        })

        stored = _stored(mongo_db, landing_page)
        assert updated["title"] == "New title"
        assert stored["status"] == "in-progress"
        assert stored["startup"] == ObjectId(startup_x.id)

    def test_empty_patch_rejected(self, projects, landing_page, startup_x):
        with pytest.raises(InvalidInput) as exc:
            projects.update(startup_x, landing_page["_id"], {"title": None})
        assert exc.value.message == "At least one field is required for update"

    def test_non_owner_forbidden(self, projects, landing_page, startup_y):
        with pytest.raises(Forbidden):
            projects.update(startup_y, landing_page["_id"], {"title": "Mine now"})

    def test_non_owner_forbidden_even_with_invalid_body(self, projects, landing_page, startup_y):
        with pytest.raises(Forbidden):
            projects.update(startup_y, landing_page["_id"], {"stipend": -1})

    def test_missing_project(self, projects, startup_x):
        with pytest.raises(NotFound):
            projects.update(startup_x, ObjectId(), {"title": "x"})

    def test_malformed_id_is_not_found(self, projects, startup_x):
        with pytest.raises(NotFound):
            projects.update(startup_x, "not-an-id", {"title": "x"})


class TestDelete:
    def test_removes_project_and_pulls_from_owner(self, mongo_db, projects, landing_page, startup_x):
        result = projects.delete(startup_x, str(landing_page["_id"]))

        assert result["deletedProjectId"] == str(landing_page["_id"])
        assert result["deletedProjectTitle"] == "Build landing page"
        assert mongo_db["projects"].count_documents({}) == 0
        owner = mongo_db["startups"].find_one({"_id": ObjectId(startup_x.id)})
        assert owner["postedProjects"] == []

    def test_non_owner_forbidden(self, mongo_db, projects, landing_page, startup_y):
        with pytest.raises(Forbidden):
            projects.delete(startup_y, landing_page["_id"])
        assert mongo_db["projects"].count_documents({}) == 1

    def test_student_forbidden(self, projects, landing_page, student_a):
        with pytest.raises(Forbidden):
            projects.delete(student_a, landing_page["_id"])


class TestQueries:
    def test_find_all_newest_first(self, mongo_db, projects, startup_x):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for offset, title in enumerate(["old", "middle", "new"]):
            mongo_db["projects"].insert_one({
                "title": title, "description": "d", "startup": ObjectId(startup_x.id),
                "stipend": 0, "status": "open", "applicants": [],
                "createdAt": base + timedelta(days=offset),
            })

        assert [p["title"] for p in projects.find_all()] == ["new", "middle", "old"]

    def test_find_by_owner_only_returns_own(self, projects, landing_page, startup_x, startup_y):
        projects.create(startup_y, {"title": "Y project", "description": "d", "stipend": 1})

        mine = projects.find_by_owner(startup_x)
        assert [p["title"] for p in mine] == ["Build landing page"]

    def test_find_by_id_populates_applicants(self, projects, landing_page, student_a):
        projects.apply(student_a, landing_page["_id"])

        project = projects.find_by_id(str(landing_page["_id"]))
        assert project["applicants"][0]["student"]["name"] == "Student A"
        assert "password" not in project["applicants"][0]["student"]

    def test_find_by_id_missing(self, projects):
        with pytest.raises(NotFound):
            projects.find_by_id(ObjectId())

    def test_orphaned_owner_populates_as_none(self, mongo_db, projects, landing_page, startup_x):
        mongo_db["startups"].delete_one({"_id": ObjectId(startup_x.id)})
        assert projects.find_by_id(landing_page["_id"])["startup"] is None

    def test_find_by_applicant_matches_both_shapes(self, mongo_db, projects, startup_x, student_a, student_b):
        sid = ObjectId(student_a.id)
        mongo_db["projects"].insert_many([
            {"title": "current", "startup": ObjectId(startup_x.id), "applicants": [
                {"student": sid, "status": "pending", "appliedAt": datetime.now(timezone.utc)},
            ], "createdAt": datetime(2026, 3, 1, tzinfo=timezone.utc)},
            {"title": "legacy", "startup": ObjectId(startup_x.id), "applicants": [sid],
             "createdAt": datetime(2026, 2, 1, tzinfo=timezone.utc)},
            {"title": "someone else", "startup": ObjectId(startup_x.id),
             "applicants": [ObjectId(student_b.id)],
             "createdAt": datetime(2026, 4, 1, tzinfo=timezone.utc)},
        ])

        titles = [p["title"] for p in projects.find_by_applicant_student(student_a)]
        assert titles == ["current", "legacy"]

    def test_find_by_applicant_requires_student(self, projects, startup_x):
        with pytest.raises(Forbidden):
            projects.find_by_applicant_student(startup_x)


class TestApplicantWorkflow:
    def test_apply_then_reapply_conflicts(self, projects, landing_page, student_a):
        result = projects.apply(student_a, landing_page["_id"])
        assert result["applicantCount"] == 1
        assert result["applicants"][0]["status"] == "pending"

        with pytest.raises(Conflict):
            projects.apply(student_a, landing_page["_id"])

    def test_rejected_student_cannot_reapply(self, projects, landing_page, student_a, startup_x):
        projects.apply(student_a, landing_page["_id"])
        projects.set_applicant_status(startup_x, landing_page["_id"], student_a.id, "rejected")

        with pytest.raises(Conflict):
            projects.apply(student_a, landing_page["_id"])

    def test_startup_cannot_apply(self, projects, landing_page, startup_y):
        with pytest.raises(Forbidden):
            projects.apply(startup_y, landing_page["_id"])

    def test_apply_to_missing_project(self, projects, student_a):
        with pytest.raises(NotFound):
            projects.apply(student_a, ObjectId())

    def test_list_applicants_owner_only(self, projects, landing_page, student_a, startup_x, startup_y):
        projects.apply(student_a, landing_page["_id"])

        listing = projects.list_applicants(startup_x, landing_page["_id"])
        assert listing["applicantCount"] == 1
        assert listing["projectTitle"] == "Build landing page"

        with pytest.raises(Forbidden):
            projects.list_applicants(startup_y, landing_page["_id"])
        with pytest.raises(Unauthenticated):
            projects.list_applicants(None, landing_page["_id"])

    def test_list_applicants_does_not_upgrade_legacy(self, mongo_db, projects, landing_page, student_a, startup_x):
        sid = ObjectId(student_a.id)
        mongo_db["projects"].update_one({"_id": landing_page["_id"]}, {"$set": {"applicants": [sid]}})

        listing = projects.list_applicants(startup_x, landing_page["_id"])

        assert listing["applicants"] == [sid]
        assert _stored(mongo_db, landing_page)["applicants"] == [sid]

    def test_set_status_upgrades_legacy_record(self, mongo_db, projects, landing_page, student_a, startup_x):
        sid = ObjectId(student_a.id)
        mongo_db["projects"].update_one({"_id": landing_page["_id"]}, {"$set": {"applicants": [sid]}})

        projects.set_applicant_status(startup_x, landing_page["_id"], student_a.id, "accepted")

        record = _stored(mongo_db, landing_page)["applicants"][0]
        assert record["student"] == sid
        assert record["status"] == "accepted"
        assert record["appliedAt"] is not None

    def test_set_status_skips_corrupted_records(self, mongo_db, projects, landing_page, student_a, startup_x):
        sid = ObjectId(student_a.id)
        applicants = [
            {"buffer": Binary(b"\x00\x01\x02")},
            {"student": sid, "status": "pending", "appliedAt": datetime.now(timezone.utc)},
        ]
        mongo_db["projects"].update_one({"_id": landing_page["_id"]}, {"$set": {"applicants": applicants}})

        result = projects.set_applicant_status(startup_x, landing_page["_id"], student_a.id, "accepted")

        assert result["applicants"][1]["status"] == "accepted"
        stored = _stored(mongo_db, landing_page)["applicants"]
        assert "buffer" in stored[0]
        assert stored[1]["status"] == "accepted"

    def test_bogus_status_does_not_mutate(self, mongo_db, projects, landing_page, student_a, startup_x):
        projects.apply(student_a, landing_page["_id"])
        before = _stored(mongo_db, landing_page)

        with pytest.raises(InvalidInput):
            projects.set_applicant_status(startup_x, landing_page["_id"], student_a.id, "bogus")

        assert _stored(mongo_db, landing_page) == before

    def test_set_status_for_non_applicant(self, projects, landing_page, student_b, startup_x):
        with pytest.raises(NotFound):
            projects.set_applicant_status(startup_x, landing_page["_id"], student_b.id, "accepted")

    def test_set_status_non_owner(self, projects, landing_page, student_a, startup_y):
        projects.apply(student_a, landing_page["_id"])
        with pytest.raises(Forbidden):
            projects.set_applicant_status(startup_y, landing_page["_id"], student_a.id, "accepted")

    def test_applicants_keep_insertion_order(self, projects, landing_page, student_a, student_b, startup_x):
        projects.apply(student_b, landing_page["_id"])
        projects.apply(student_a, landing_page["_id"])

        listing = projects.list_applicants(startup_x, landing_page["_id"])
        assert [a["student"]["name"] for a in listing["applicants"]] == ["Student B", "Student A"]
