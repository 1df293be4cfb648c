"""Repository port for users, roles and their associations."""

from abc import abstractmethod
from typing import Protocol

from userapi.domain.shared.port import Port
from userapi.domain.user.model import Role, RoleId, User, UserId, UserRole


class UserRoleRepository(Port, Protocol):
    """Persistence contract for the user domain.

    The store is the system of record. Uniqueness and referential integrity
    are enforced by store constraints; implementations translate constraint
    violations into the domain errors named below. Every method runs as one
    atomic store transaction and may raise RepositoryError on store failure.
    """

    # Users

    @abstractmethod
    async def create_user(self, external_identity_ref: str) -> User:
        """Insert a user. Raises DuplicateIdentityRefError."""
        ...

    @abstractmethod
    async def get_user(self, user_id: UserId) -> User | None: ...

    @abstractmethod
    async def get_user_by_identity_ref(self, external_identity_ref: str) -> User | None: ...

    @abstractmethod
    async def list_users(self, page: int, page_size: int) -> tuple[list[User], int]:
        """Return one page of users ordered by (created_at, id) plus the total count."""
        ...

    @abstractmethod
    async def delete_user(self, user_id: UserId) -> bool:
        """Delete a user and its associations. Returns False if the user did not exist."""
        ...

    # Roles

    @abstractmethod
    async def create_role(self, name: str) -> Role:
        """Insert a role. Raises DuplicateRoleNameError."""
        ...

    @abstractmethod
    async def get_role(self, role_id: RoleId) -> Role | None: ...

    @abstractmethod
    async def get_role_by_name(self, name: str) -> Role | None: ...

    @abstractmethod
    async def list_roles(self, page: int, page_size: int) -> tuple[list[Role], int]:
        """Return one page of roles ordered by (created_at, id) plus the total count."""
        ...

    @abstractmethod
    async def rename_role(self, role_id: RoleId, name: str) -> Role | None:
        """Rename a role. Returns None if absent; raises DuplicateRoleNameError."""
        ...

    @abstractmethod
    async def delete_role(self, role_id: RoleId) -> bool:
        """Delete a role and its associations. Returns False if the role did not exist."""
        ...

    # Associations

    @abstractmethod
    async def assign_role(self, user_id: UserId, role_id: RoleId) -> UserRole:
        """Insert the (user, role) pair.

        Raises UserAlreadyHasRoleError when the pair exists, and
        UserNotFoundError / RoleNotFoundError when a parent is missing.
        """
        ...

    @abstractmethod
    async def unassign_role(self, user_id: UserId, role_id: RoleId) -> None:
        """Delete the (user, role) pair. Raises UserRoleNotAssignedError if absent."""
        ...

    @abstractmethod
    async def list_roles_for_user(self, user_id: UserId) -> list[Role]: ...

    @abstractmethod
    async def list_users_for_role(self, role_id: RoleId) -> list[User]: ...

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip to the store. Raises RepositoryError if unreachable."""
        ...
