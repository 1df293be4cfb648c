"""Role entity."""

from datetime import UTC, datetime

from userapi.domain.shared.model.entity import Entity
from userapi.domain.user.model.value import RoleId


class Role(Entity):
    """A locally owned role definition.

    Invariants:
    - `name` is unique across roles (case policy is configurable)
    - `name` is stored trimmed and is never empty
    """

    id: RoleId
    name: str
    created_at: datetime

    @classmethod
    def create(cls, name: str) -> "Role":
        return cls(id=RoleId.generate(), name=name, created_at=datetime.now(UTC))

    def renamed(self, name: str) -> "Role":
        return self.model_copy(update={"name": name})
