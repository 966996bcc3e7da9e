from typing import Optional

from taskboard.core.exceptions import InvalidInputError
from taskboard.models.board import BoardUserRole, MemberStatus


def require_text(value: Optional[str], field: str) -> str:
    """Stripped non-empty text or InvalidInputError"""
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field} must not be empty")
    return str(value).strip()


def normalize_email(email: Optional[str]) -> str:
    email = require_text(email, "email")
    if "@" not in email:
        raise InvalidInputError("email is not a valid address")
    return email.lower()


def parse_member_role(role) -> BoardUserRole:
    """Roles that can be granted through invitations and role changes"""
    try:
        role = BoardUserRole(role)
    except ValueError:
        raise InvalidInputError(f"Unknown role '{role}'")
    if role == BoardUserRole.OWNER:
        raise InvalidInputError("The owner role cannot be granted")
    return role


def parse_response(response) -> MemberStatus:
    try:
        response = MemberStatus(response)
    except ValueError:
        raise InvalidInputError(f"Unknown invitation response '{response}'")
    if response == MemberStatus.PENDING:
        raise InvalidInputError("Invitation response must be accepted or rejected")
    return response
