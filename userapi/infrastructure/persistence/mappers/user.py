from datetime import UTC, datetime
from typing import Any, Dict

from userapi.domain.user.model import Role, RoleId, User, UserId, UserRole


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; every stored timestamp is UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def row_to_user(row: Dict[str, Any]) -> User:
    """Convert database row to User domain model."""
    return User(
        id=UserId.parse(row["id"]),
        external_identity_ref=row["external_identity_ref"],
        created_at=_aware(row["created_at"]),
    )


def user_to_dict(user: User) -> Dict[str, Any]:
    """Convert User domain model to database dict."""
    return {
        "id": str(user.id),
        "external_identity_ref": user.external_identity_ref,
        "created_at": user.created_at,
    }


def row_to_role(row: Dict[str, Any]) -> Role:
    """Convert database row to Role domain model."""
    return Role(
        id=RoleId.parse(row["id"]),
        name=row["name"],
        created_at=_aware(row["created_at"]),
    )


def role_to_dict(role: Role, name_key: str) -> Dict[str, Any]:
    """Convert Role domain model to database dict, with its normalised name."""
    return {
        "id": str(role.id),
        "name": role.name,
        "name_key": name_key,
        "created_at": role.created_at,
    }


def user_role_to_dict(assignment: UserRole) -> Dict[str, Any]:
    return {
        "user_id": str(assignment.user_id),
        "role_id": str(assignment.role_id),
        "assigned_at": assignment.assigned_at,
    }
