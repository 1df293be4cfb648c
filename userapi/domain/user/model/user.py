"""User entity."""

from datetime import UTC, datetime

from userapi.domain.shared.model.entity import Entity
from userapi.domain.user.model.value import UserId


class User(Entity):
    """A user known to this platform.

    Credentials and profile live with the external identity provider; this
    record only links the provider's subject to a local id.

    Invariants:
    - `external_identity_ref` is unique across users and never empty
    - `id` and `external_identity_ref` are immutable after creation
    """

    id: UserId
    external_identity_ref: str
    created_at: datetime

    @classmethod
    def create(cls, external_identity_ref: str) -> "User":
        return cls(
            id=UserId.generate(),
            external_identity_ref=external_identity_ref,
            created_at=datetime.now(UTC),
        )
