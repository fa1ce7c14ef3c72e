"""
Project Service - projects and the applicant workflow.

Collection: projects
    {
        "_id": ObjectId,
        "title": str, "description": str,
        "startup": ObjectId,             # owner, never changes
        "requiredSkills": [str],         # order kept, duplicates kept
        "stipend": number,
        "duration": str,                 # optional
        "deadline": datetime,            # optional, future at write time
        "status": "open" | "in-progress" | "completed",
        "applicants": [ {student, status, appliedAt} | <legacy id> | <corrupted> ],
        "selectedStudents": [ObjectId],
        "createdAt": datetime, "updatedAt": datetime
    }

Every mutating method takes the calling Principal and runs it through the
authorization gate after the project is loaded, so callers get 401/403/404
in the same order no matter which surface drives the service.

Known gaps (no transactions):
- create / delete touch the project AND the owner's postedProjects with two
  separate writes. A failure on the second write is logged as
  owner_list_sync_failed and reported as InternalError; the first write
  is not rolled back.
- apply / set_applicant_status read the applicants array, change it in
  memory and write it back. Two concurrent applies from the same student
  can both pass the duplicate check.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

import structlog
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.core import authorization as gate
from app.core.authorization import Principal
from app.core.errors import InternalError, InvalidInput, NotFound
from app.db.mongodb import get_collection, COLLECTIONS
from app.schemas.schemas import PrincipalKind, ProjectCreate, ProjectStatus, ProjectUpdate
from app.services import applicants as lifecycle
from app.services.identity_service import IdentityService, to_object_id
from app.utils.validation import validate_payload

logger = structlog.get_logger(__name__)

OWNER_FIELDS = ("name", "email", "founderName", "logoUrl", "website", "domain")
APPLICANT_FIELDS = (
    "name", "email", "skills", "year", "semester", "batch",
    "department", "mobileNumber", "resumeUrl", "profilePictureUrl",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProjectService:
    """
    Persistence and query surface for projects, plus the applicant
    workflow built on app.services.applicants.
    """

    def __init__(self, projects: Collection = None, identity: IdentityService = None):
        self.collection: Collection = projects if projects is not None else get_collection(COLLECTIONS["projects"])
        self.identity = identity or IdentityService()

    # ------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------

    def _load(self, project_id: Any) -> dict:
        oid = to_object_id(project_id)
        doc = self.collection.find_one({"_id": oid}) if oid else None
        if doc is None:
            raise NotFound("Project not found")
        return doc

    def _load_managed(self, principal: Optional[Principal], project_id: Any) -> dict:
        """Load a project the principal must own (startup owner only)."""
        gate.enforce(gate.require_kind(principal, PrincipalKind.startup))
        project = self._load(project_id)
        gate.enforce(gate.can_manage_project(principal, project))
        return project

    # ------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------

    def create(self, principal: Optional[Principal], payload: dict) -> dict:
        """
        Create a project owned by the calling startup.

        The owner's postedProjects push happens after the insert; if it
        fails the project still exists.
        """
        gate.enforce(gate.can_create_project(principal))
        data = validate_payload(ProjectCreate, payload)

        now = _now()
        doc = {
            "title": data.title,
            "description": data.description,
            "startup": to_object_id(principal.id),
            "requiredSkills": list(data.requiredSkills),
            "stipend": data.stipend,
            "status": ProjectStatus.open.value,
            "applicants": [],
            "selectedStudents": [],
            "createdAt": now,
            "updatedAt": now,
        }
        if data.duration:
            doc["duration"] = data.duration
        if data.deadline:
            doc["deadline"] = data.deadline

        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error("project_insert_failed", owner_id=principal.id, error=str(e))
            raise InternalError("Failed to create project")

        project_id = result.inserted_id
        logger.info("project_created", project_id=str(project_id), owner_id=principal.id)
        self._sync_owner_list("push", principal.id, project_id)

        return self.populate(self._load(project_id), with_applicants=False)

    def update(self, principal: Optional[Principal], project_id: Any, payload: dict) -> dict:
        """Patch the whitelisted fields; each supplied field is validated."""
        project = self._load_managed(principal, project_id)
        data = validate_payload(ProjectUpdate, payload)

        patch = data.to_patch()
        if not patch:
            raise InvalidInput("At least one field is required for update")
        patch["updatedAt"] = _now()

        self.collection.update_one({"_id": project["_id"]}, {"$set": patch})
        logger.info(
            "project_updated",
            project_id=str(project["_id"]),
            fields=sorted(k for k in patch if k != "updatedAt"),
        )
        return self.populate(self._load(project["_id"]), with_applicants=False)

    def delete(self, principal: Optional[Principal], project_id: Any) -> dict:
        project = self._load_managed(principal, project_id)

        try:
            self.collection.delete_one({"_id": project["_id"]})
        except PyMongoError as e:
            logger.error("project_delete_failed", project_id=str(project["_id"]), error=str(e))
            raise InternalError("Failed to delete project")

        logger.info("project_deleted", project_id=str(project["_id"]), owner_id=principal.id)
        self._sync_owner_list("pull", principal.id, project["_id"])

        return {
            "deletedProjectId": str(project["_id"]),
            "deletedProjectTitle": project.get("title"),
            "deletedAt": _now().isoformat(),
        }

    def _sync_owner_list(self, action: str, owner_id: str, project_id: ObjectId) -> None:
        """Second step of create/delete. Not rolled back with the first."""
        try:
            if action == "push":
                self.identity.push_posted_project(owner_id, project_id)
            else:
                self.identity.pull_posted_project(owner_id, project_id)
        except PyMongoError as e:
            logger.error(
                "owner_list_sync_failed",
                action=action,
                owner_id=owner_id,
                project_id=str(project_id),
                error=str(e),
            )
            raise InternalError(
                "Project was saved but the startup's project list could not be updated"
            )

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def find_by_id(self, project_id: Any) -> dict:
        return self.populate(self._load(project_id))

    def find_by_owner(self, principal: Optional[Principal]) -> List[dict]:
        gate.enforce(gate.require_kind(principal, PrincipalKind.startup))
        cursor = self.collection.find({"startup": to_object_id(principal.id)}).sort("createdAt", DESCENDING)
        return [self.populate(doc, with_applicants=False) for doc in cursor]

    def find_all(self) -> List[dict]:
        """All projects, newest first."""
        cursor = self.collection.find().sort("createdAt", DESCENDING)
        return [self.populate(doc, with_applicants=False) for doc in cursor]

    def find_by_applicant_student(self, principal: Optional[Principal]) -> List[dict]:
        """
        Projects the calling student applied to, in either record shape:
        current records match on applicants.student, legacy bare ids match
        the array element itself.
        """
        gate.enforce(gate.can_apply(principal))
        oid = to_object_id(principal.id)
        ids = [oid, str(oid)]
        query = {
            "$or": [
                {"applicants.student": {"$in": ids}},
                {"applicants": {"$in": ids}},
            ]
        }
        cursor = self.collection.find(query).sort("createdAt", DESCENDING)
        return [self.populate(doc) for doc in cursor]

    # ------------------------------------------------------------
    # Applicant workflow
    # ------------------------------------------------------------

    def apply(self, principal: Optional[Principal], project_id: Any) -> dict:
        gate.enforce(gate.can_apply(principal))
        project = self._load(project_id)

        updated = lifecycle.apply(project.get("applicants"), to_object_id(principal.id), _now())
        self._write_applicants(project, updated)
        logger.info("project_applied", project_id=str(project["_id"]), student_id=principal.id)

        project["applicants"] = updated
        populated = self._populate_applicants(updated)
        return {
            "projectId": str(project["_id"]),
            "applicants": populated,
            "applicantCount": len(updated),
        }

    def list_applicants(self, principal: Optional[Principal], project_id: Any) -> dict:
        project = self._load_managed(principal, project_id)
        applicants = lifecycle.list_applicants(project.get("applicants"))
        return {
            "projectId": str(project["_id"]),
            "projectTitle": project.get("title"),
            "applicantCount": len(applicants),
            "applicants": self._populate_applicants(applicants),
        }

    def set_applicant_status(self, principal: Optional[Principal], project_id: Any, student_id: Any, status: Any) -> dict:
        project = self._load_managed(principal, project_id)

        updated = lifecycle.set_status(project.get("applicants"), student_id, status, _now())
        self._write_applicants(project, updated)
        logger.info(
            "applicant_status_updated",
            project_id=str(project["_id"]),
            student_id=str(student_id),
            status=status,
        )
        return {
            "projectId": str(project["_id"]),
            "projectTitle": project.get("title"),
            "applicants": self._populate_applicants(updated),
        }

    def _write_applicants(self, project: dict, applicants: List[Any]) -> None:
        try:
            self.collection.update_one(
                {"_id": project["_id"]},
                {"$set": {"applicants": applicants, "updatedAt": _now()}},
            )
        except PyMongoError as e:
            logger.error("applicants_write_failed", project_id=str(project["_id"]), error=str(e))
            raise InternalError("Failed to save project applicants")

    # ------------------------------------------------------------
    # Population
    # ------------------------------------------------------------

    def populate(self, project: dict, with_applicants: bool = True) -> dict:
        """
        Replace the owner id with the owner's public fields. A deleted owner
        leaves startup as None rather than failing.
        """
        project = dict(project)
        owner_id = project.get("startup")
        owners = self.identity.public_fields(PrincipalKind.startup, [owner_id], OWNER_FIELDS)
        project["startup"] = owners.get(str(owner_id))
        if with_applicants:
            project["applicants"] = self._populate_applicants(project.get("applicants") or [])
        return project

    def _populate_applicants(self, applicants: List[Any]) -> List[Any]:
        """Attach student details to current-shape records; others pass through."""
        current_ids = [
            record.student for record in map(lifecycle.classify, applicants)
            if isinstance(record, lifecycle.CurrentApplicant)
        ]
        students = self.identity.public_fields(PrincipalKind.student, current_ids, APPLICANT_FIELDS)

        populated = []
        for raw in applicants:
            record = lifecycle.classify(raw)
            if isinstance(record, lifecycle.CurrentApplicant):
                entry = dict(raw)
                entry["student"] = students.get(str(record.student), {"_id": record.student})
                populated.append(entry)
            else:
                populated.append(raw)
        return populated
