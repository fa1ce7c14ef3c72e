"""
Authorization Gate - pure allow/deny decisions over loaded entities.

The gate never touches the database. Callers load the principal and the
target first, ask the gate, then call enforce() which turns a denial into
Unauthenticated (no principal) or Forbidden (anything else).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from app.core.errors import Forbidden, Unauthenticated
from app.schemas.schemas import PrincipalKind


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved from an access token."""

    id: str
    kind: PrincipalKind
    email: str
    profile: Mapping[str, Any]


class DenyReason(str, Enum):
    missing_principal = "missing_principal"
    wrong_kind = "wrong_kind"
    not_owner = "not_owner"
    not_self = "not_self"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: DenyReason, message: str) -> Decision:
    return Decision(False, reason, message)


def _missing() -> Decision:
    return _deny(DenyReason.missing_principal, "Unauthorized request")


def require_kind(principal: Optional[Principal], kind: PrincipalKind) -> Decision:
    if principal is None:
        return _missing()
    if principal.kind != kind:
        return _deny(
            DenyReason.wrong_kind,
            f"Access denied - Only {kind.value}s can access this resource",
        )
    return ALLOW


def can_mutate_profile(principal: Optional[Principal], profile_id: Any) -> Decision:
    if principal is None:
        return _missing()
    if str(principal.id) != str(profile_id):
        return _deny(DenyReason.not_self, "You can only modify your own profile")
    return ALLOW


def can_create_project(principal: Optional[Principal]) -> Decision:
    decision = require_kind(principal, PrincipalKind.startup)
    if decision.reason == DenyReason.wrong_kind:
        return _deny(DenyReason.wrong_kind, "Only startups can create projects")
    return decision


def can_manage_project(principal: Optional[Principal], project: Mapping[str, Any]) -> Decision:
    """Update, delete, list applicants, set applicant status."""
    decision = require_kind(principal, PrincipalKind.startup)
    if not decision:
        return decision
    if str(project.get("startup")) != str(principal.id):
        return _deny(DenyReason.not_owner, "Unauthorized - You do not own this project")
    return ALLOW


def can_apply(principal: Optional[Principal]) -> Decision:
    return require_kind(principal, PrincipalKind.student)


def enforce(decision: Decision) -> None:
    """Raise the error kind matching a denial; no-op when allowed."""
    if decision.allowed:
        return
    if decision.reason == DenyReason.missing_principal:
        raise Unauthenticated(decision.message)
    raise Forbidden(decision.message)
