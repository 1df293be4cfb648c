"""UserRole association: which roles a user holds."""

from datetime import UTC, datetime

from userapi.domain.shared.model.entity import Entity
from userapi.domain.user.model.value import RoleId, UserId


class UserRole(Entity):
    """Association between a user and a role.

    Identified by the (user_id, role_id) pair; the pair exists at most once
    and disappears with either endpoint.
    """

    user_id: UserId
    role_id: RoleId
    assigned_at: datetime

    @property
    def identity(self) -> tuple[UserId, RoleId]:
        return (self.user_id, self.role_id)

    @classmethod
    def create(cls, user_id: UserId, role_id: RoleId) -> "UserRole":
        return cls(user_id=user_id, role_id=role_id, assigned_at=datetime.now(UTC))
