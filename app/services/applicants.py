"""
Application Lifecycle Engine - applicant records embedded in a project.

An applicant record can be stored in three physical shapes:

1. Current   {"student": <id>, "status": "pending", "appliedAt": <datetime>}
2. Legacy    <id>            (bare student reference, pre-status schema)
3. Corrupted anything else   (e.g. {"buffer": b"..."} from a bad migration)

Every scan goes through resolve_identifier(), so the uniqueness check in
apply() and the lookup in set_status() agree on who a record belongs to.
Corrupted records resolve to None and never match.

All operations are pure: they take the raw applicants list and return a new
one. ProjectService does the reading and writing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Union

from bson import ObjectId

from app.core.errors import Conflict, InvalidInput, NotFound
from app.schemas.schemas import ApplicantStatus


@dataclass(frozen=True)
class CurrentApplicant:
    student: Any
    status: str
    applied_at: Optional[datetime]


@dataclass(frozen=True)
class LegacyApplicant:
    student: Any


@dataclass(frozen=True)
class CorruptedApplicant:
    raw: Any


ApplicantRecord = Union[CurrentApplicant, LegacyApplicant, CorruptedApplicant]


def _is_reference(value: Any) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and value.strip() != "")


def classify(raw: Any) -> ApplicantRecord:
    """Sort a stored applicant entry into one of the three shapes."""
    if isinstance(raw, dict):
        if "buffer" in raw:
            return CorruptedApplicant(raw)
        student = raw.get("student")
        if not _is_reference(student):
            return CorruptedApplicant(raw)
        return CurrentApplicant(
            student=student,
            status=raw.get("status") or ApplicantStatus.pending.value,
            applied_at=raw.get("appliedAt"),
        )
    if _is_reference(raw):
        return LegacyApplicant(raw)
    return CorruptedApplicant(raw)


def resolve_identifier(raw: Any) -> Optional[str]:
    """Student id a stored record belongs to, or None for corrupted records."""
    record = classify(raw)
    if isinstance(record, CorruptedApplicant):
        return None
    return str(record.student)


def find_index(applicants: List[Any], student_id: Any) -> int:
    """Index of the first record resolving to student_id, -1 if none."""
    target = str(student_id)
    for index, raw in enumerate(applicants or []):
        if resolve_identifier(raw) == target:
            return index
    return -1


def has_applied(applicants: List[Any], student_id: Any) -> bool:
    return find_index(applicants, student_id) != -1


def apply(applicants: Optional[List[Any]], student_id: Any, now: datetime) -> List[Any]:
    """
    Append a pending application for student_id.

    Any existing record for the student blocks the application, whatever
    its status, so a rejected student cannot apply again.

    Raises:
        Conflict: the student already has a record in this project
    """
    current = list(applicants or [])
    if has_applied(current, student_id):
        raise Conflict("You have already applied to this project")

    current.append({
        "student": student_id,
        "status": ApplicantStatus.pending.value,
        "appliedAt": now,
    })
    return current


def validate_status(status: Any) -> str:
    valid = [s.value for s in ApplicantStatus]
    if not isinstance(status, str) or status not in valid:
        raise InvalidInput(f"Invalid status. Must be one of: {', '.join(valid)}")
    return status


def set_status(applicants: Optional[List[Any]], student_id: Any, new_status: Any, now: datetime) -> List[Any]:
    """
    Set the status of student_id's application.

    The first matching record wins. A current-shape record keeps its
    appliedAt; a legacy record is replaced by a current-shape record
    stamped with `now`.

    Raises:
        InvalidInput: new_status is not pending/accepted/rejected
        NotFound: no record resolves to student_id
    """
    status = validate_status(new_status)

    current = list(applicants or [])
    index = find_index(current, student_id)
    if index == -1:
        raise NotFound(
            "Applicant not found for this project. "
            "Please ensure the student has applied to this project."
        )

    record = classify(current[index])
    if isinstance(record, CurrentApplicant):
        updated = dict(current[index])
        updated["status"] = status
    else:
        updated = {"student": record.student, "status": status, "appliedAt": now}

    current[index] = updated
    return current


def list_applicants(applicants: Optional[List[Any]]) -> List[Any]:
    """Read-only projection: records are returned as stored, no upgrade."""
    return list(applicants or [])
