"""
Identity Service - students and startups (the two principal kinds).

Collections:
1. students - student principals, profile, resume / picture URLs
2. startups - startup principals, profile, logo URL, posted project ids

Email is unique across BOTH collections: a student email cannot be reused
by a startup and vice versa. The password hash and refresh token never
leave this module (see PUBLIC_PROJECTION).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.auth import hash_password, verify_password
from app.core.errors import Conflict, InternalError, InvalidInput, NotFound, Unauthenticated
from app.db.mongodb import get_collection, COLLECTIONS
from app.schemas.schemas import (
    PrincipalKind, StartupProfileUpdate, StartupRegister, StudentProfileUpdate, StudentRegister
)

logger = structlog.get_logger(__name__)

# Never returned to clients
PUBLIC_PROJECTION = {"password": 0, "refreshToken": 0}

STUDENT_FILE_FIELDS = {"resumeUrl", "profilePictureUrl"}


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id from a path/token; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IdentityService:
    """
    Persistence and lookup for Student / Startup principals.
    """

    def __init__(self, students: Collection = None, startups: Collection = None):
        self.students: Collection = students if students is not None else get_collection(COLLECTIONS["students"])
        self.startups: Collection = startups if startups is not None else get_collection(COLLECTIONS["startups"])

    def collection_for(self, kind: PrincipalKind) -> Collection:
        kind = PrincipalKind(kind)
        return self.students if kind == PrincipalKind.student else self.startups

    # ------------------------------------------------------------
    # Registration / login
    # ------------------------------------------------------------

    def email_in_use(self, email: str) -> bool:
        """Check both principal collections for the email."""
        email = normalize_email(email)
        return (
            self.students.find_one({"email": email}, {"_id": 1}) is not None
            or self.startups.find_one({"email": email}, {"_id": 1}) is not None
        )

    def _insert_principal(self, kind: PrincipalKind, doc: dict) -> dict:
        if self.email_in_use(doc["email"]):
            raise Conflict("User with email already exists")

        now = _now()
        doc.update({"role": kind.value, "createdAt": now, "updatedAt": now})
        try:
            result = self.collection_for(kind).insert_one(doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email
            raise Conflict("User with email already exists")
        except PyMongoError as e:
            logger.error("principal_insert_failed", kind=kind.value, error=str(e))
            raise InternalError("Something went wrong while registering the user")

        logger.info("principal_registered", kind=kind.value, principal_id=str(result.inserted_id))
        return self.get_profile(kind, result.inserted_id)

    def register_student(self, data: StudentRegister) -> dict:
        doc = data.model_dump(exclude_none=True)
        doc["email"] = normalize_email(doc["email"])
        doc["password"] = hash_password(doc["password"])
        return self._insert_principal(PrincipalKind.student, doc)

    def register_startup(self, data: StartupRegister, logo_url: Optional[str] = None) -> dict:
        doc = data.model_dump(exclude_none=True)
        doc["email"] = normalize_email(doc["email"])
        doc["password"] = hash_password(doc["password"])
        doc["postedProjects"] = []
        if logo_url:
            doc["logoUrl"] = logo_url
        return self._insert_principal(PrincipalKind.startup, doc)

    def authenticate(self, email: str, password: str) -> dict:
        """
        Find the principal owning email (either kind) and check the password.

        Returns:
            Public profile dict including "role"
        """
        email = normalize_email(email)
        for kind in (PrincipalKind.student, PrincipalKind.startup):
            doc = self.collection_for(kind).find_one({"email": email})
            if doc is None:
                continue
            if not verify_password(password, doc.get("password")):
                break
            doc.pop("password", None)
            doc.pop("refreshToken", None)
            return doc
        raise Unauthenticated("Invalid email or password")

    # ------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------

    def store_refresh_token(self, kind: PrincipalKind, principal_id: Any, token: str) -> None:
        self.collection_for(kind).update_one(
            {"_id": to_object_id(principal_id)}, {"$set": {"refreshToken": token}}
        )

    def clear_refresh_token(self, kind: PrincipalKind, principal_id: Any) -> None:
        self.collection_for(kind).update_one(
            {"_id": to_object_id(principal_id)}, {"$unset": {"refreshToken": 1}}
        )

    def verify_refresh_token(self, kind: PrincipalKind, principal_id: Any, token: str) -> dict:
        """The presented token must be the one currently stored (rotation)."""
        oid = to_object_id(principal_id)
        doc = self.collection_for(kind).find_one({"_id": oid}) if oid else None
        if doc is None:
            raise Unauthenticated("Invalid refresh token")
        if doc.get("refreshToken") != token:
            raise Unauthenticated("Refresh token is expired or used")
        doc.pop("password", None)
        doc.pop("refreshToken", None)
        return doc

    # ------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------

    def find_principal(self, kind: PrincipalKind, principal_id: Any) -> Optional[dict]:
        oid = to_object_id(principal_id)
        if oid is None:
            return None
        return self.collection_for(kind).find_one({"_id": oid}, PUBLIC_PROJECTION)

    def get_profile(self, kind: PrincipalKind, principal_id: Any) -> dict:
        doc = self.find_principal(kind, principal_id)
        if doc is None:
            raise NotFound(f"{PrincipalKind(kind).value.capitalize()} not found")
        return doc

    def _patch(self, kind: PrincipalKind, principal_id: Any, patch: Dict[str, Any]) -> dict:
        if not patch:
            raise InvalidInput("At least one field is required for update")

        patch["updatedAt"] = _now()
        result = self.collection_for(kind).update_one(
            {"_id": to_object_id(principal_id)}, {"$set": patch}
        )
        if result.matched_count == 0:
            raise NotFound(f"{PrincipalKind(kind).value.capitalize()} not found")
        return self.get_profile(kind, principal_id)

    def update_student_profile(self, student_id: Any, data: StudentProfileUpdate) -> dict:
        return self._patch(PrincipalKind.student, student_id, data.model_dump(exclude_none=True))

    def update_startup_profile(self, startup_id: Any, data: StartupProfileUpdate) -> dict:
        return self._patch(PrincipalKind.startup, startup_id, data.model_dump(exclude_none=True))

    def set_student_file_url(self, student_id: Any, field: str, url: str) -> dict:
        if field not in STUDENT_FILE_FIELDS:
            raise InvalidInput(f"Unknown file field '{field}'")
        return self._patch(PrincipalKind.student, student_id, {field: url})

    def set_startup_logo(self, startup_id: Any, url: str) -> dict:
        return self._patch(PrincipalKind.startup, startup_id, {"logoUrl": url})

    def delete_principal(self, kind: PrincipalKind, principal_id: Any) -> dict:
        """
        Delete an account. Projects owned by a deleted startup are left
        in place with an orphaned owner reference.
        """
        oid = to_object_id(principal_id)
        doc = self.collection_for(kind).find_one_and_delete({"_id": oid}, projection=PUBLIC_PROJECTION) if oid else None
        if doc is None:
            raise NotFound(f"{PrincipalKind(kind).value.capitalize()} not found")
        logger.info("principal_deleted", kind=PrincipalKind(kind).value, principal_id=str(oid))
        return doc

    # ------------------------------------------------------------
    # Posted projects (startups only)
    # ------------------------------------------------------------

    def push_posted_project(self, startup_id: Any, project_id: ObjectId) -> None:
        self.startups.update_one(
            {"_id": to_object_id(startup_id)}, {"$push": {"postedProjects": project_id}}
        )

    def pull_posted_project(self, startup_id: Any, project_id: ObjectId) -> None:
        self.startups.update_one(
            {"_id": to_object_id(startup_id)}, {"$pull": {"postedProjects": project_id}}
        )

    # ------------------------------------------------------------
    # Population helpers
    # ------------------------------------------------------------

    def public_fields(self, kind: PrincipalKind, ids, fields) -> Dict[str, dict]:
        """Map str(id) -> selected public fields for a batch of ids."""
        oids = [oid for oid in (to_object_id(i) for i in ids) if oid is not None]
        if not oids:
            return {}
        projection = {field: 1 for field in fields}
        cursor = self.collection_for(kind).find({"_id": {"$in": oids}}, projection)
        return {str(doc["_id"]): doc for doc in cursor}
