"""UserService - users, roles and role assignment."""

import logging

import logfire
from pydantic import TypeAdapter

from userapi.config import PaginationConfig, ServiceConfig
from userapi.domain.shared.error import (
    DuplicateIdentityRefError,
    DuplicateRoleNameError,
    RepositoryError,
    RoleNotFoundError,
    UserNotFoundError,
)
from userapi.domain.shared.model.page import Page
from userapi.domain.shared.service import Service
from userapi.domain.user.model import (
    CacheStatus,
    HealthReport,
    Role,
    RoleId,
    User,
    UserId,
    UserRole,
)
from userapi.domain.user.port.repository import UserRoleRepository
from userapi.domain.user.service.cache import EntityCache
from userapi.domain.user.service.validator import (
    validate_external_identity_ref,
    validate_pagination,
    validate_role_name,
)

logger = logging.getLogger(__name__)

_user_adapter = TypeAdapter(User)
_role_adapter = TypeAdapter(Role)
_users_adapter = TypeAdapter(list[User])
_roles_adapter = TypeAdapter(list[Role])
_user_page_adapter = TypeAdapter(Page[User])
_role_page_adapter = TypeAdapter(Page[Role])


class UserService(Service):
    """Orchestrates validation, persistence and caching for the user domain.

    Mutations run validate -> existence pre-check -> repository write ->
    cache invalidation. The pre-checks only sharpen error reporting; store
    constraints stay the safety mechanism under concurrent writes, and the
    repository translates their violations into the same domain errors.

    Reads are cache-aside: cache hit returns immediately, a miss reads the
    repository and populates the cache. Cache failures never surface here.
    Writes are never retried.
    """

    repository: UserRoleRepository
    cache: EntityCache
    pagination: PaginationConfig
    service_config: ServiceConfig

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, external_identity_ref: str) -> User:
        with logfire.span("CreateUser"):
            ref = validate_external_identity_ref(external_identity_ref)

            if await self.repository.get_user_by_identity_ref(ref) is not None:
                raise DuplicateIdentityRefError(ref)

            user = await self.repository.create_user(ref)
            await self.cache.invalidate(patterns=[self.cache.users_lists_pattern])

            logger.info("User created: %s", user.id)
            return user

    async def get_user(self, user_id: UserId) -> User:
        """Return the user or raise UserNotFoundError."""
        with logfire.span("GetUser"):
            user = await self._load_user(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            return user

    async def find_user_by_identity_ref(self, external_identity_ref: str) -> User | None:
        """Resolve an identity provider subject to the local user, if any.

        Not cached: the lookup key is the reference, not the id.
        """
        with logfire.span("FindUserByIdentityRef"):
            ref = validate_external_identity_ref(external_identity_ref)
            return await self.repository.get_user_by_identity_ref(ref)

    async def list_users(self, page: int = 1, page_size: int | None = None) -> Page[User]:
        with logfire.span("ListUsers"):
            page_size = self._page_size(page, page_size)

            key = self.cache.users_list_key(page, page_size)
            cached = await self.cache.read(key, _user_page_adapter)
            if cached is not None:
                return cached

            items, total = await self.repository.list_users(page, page_size)
            result = Page[User].build(items, total, page, page_size)
            await self.cache.write(key, _user_page_adapter, result, self.cache.list_ttl)
            return result

    async def delete_user(self, user_id: UserId) -> None:
        """Delete a user together with all of its role assignments."""
        with logfire.span("DeleteUser"):
            if not await self.repository.delete_user(user_id):
                raise UserNotFoundError(user_id)

            await self.cache.invalidate(
                keys=[self.cache.user_key(user_id), self.cache.user_roles_key(user_id)],
                patterns=[self.cache.users_lists_pattern, self.cache.all_role_users_pattern],
            )
            logger.info("User deleted: %s", user_id)

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def create_role(self, name: str) -> Role:
        with logfire.span("CreateRole"):
            name = validate_role_name(name)

            if await self.repository.get_role_by_name(name) is not None:
                raise DuplicateRoleNameError(name)

            role = await self.repository.create_role(name)
            await self.cache.invalidate(patterns=[self.cache.roles_lists_pattern])

            logger.info("Role created: %s (%s)", role.name, role.id)
            return role

    async def get_role(self, role_id: RoleId) -> Role:
        """Return the role or raise RoleNotFoundError."""
        with logfire.span("GetRole"):
            role = await self._load_role(role_id)
            if role is None:
                raise RoleNotFoundError(role_id)
            return role

    async def list_roles(self, page: int = 1, page_size: int | None = None) -> Page[Role]:
        with logfire.span("ListRoles"):
            page_size = self._page_size(page, page_size)

            key = self.cache.roles_list_key(page, page_size)
            cached = await self.cache.read(key, _role_page_adapter)
            if cached is not None:
                return cached

            items, total = await self.repository.list_roles(page, page_size)
            result = Page[Role].build(items, total, page, page_size)
            await self.cache.write(key, _role_page_adapter, result, self.cache.list_ttl)
            return result

    async def rename_role(self, role_id: RoleId, name: str) -> Role:
        with logfire.span("RenameRole"):
            name = validate_role_name(name)

            existing = await self.repository.get_role_by_name(name)
            if existing is not None and existing.id != role_id:
                raise DuplicateRoleNameError(name)

            role = await self.repository.rename_role(role_id, name)
            if role is None:
                raise RoleNotFoundError(role_id)

            # Role names are embedded in every cached user-roles listing.
            await self.cache.invalidate(
                keys=[self.cache.role_key(role_id)],
                patterns=[self.cache.roles_lists_pattern, self.cache.all_user_roles_pattern],
            )
            logger.info("Role renamed: %s -> %s", role_id, role.name)
            return role

    async def delete_role(self, role_id: RoleId) -> None:
        """Delete a role and remove it from every user holding it."""
        with logfire.span("DeleteRole"):
            if not await self.repository.delete_role(role_id):
                raise RoleNotFoundError(role_id)

            await self.cache.invalidate(
                keys=[self.cache.role_key(role_id), self.cache.role_users_key(role_id)],
                patterns=[self.cache.roles_lists_pattern, self.cache.all_user_roles_pattern],
            )
            logger.info("Role deleted: %s", role_id)

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    async def assign_role(self, user_id: UserId, role_id: RoleId) -> UserRole:
        """Move the (user, role) pair from unassigned to assigned.

        A second assign of the same pair raises UserAlreadyHasRoleError; the
        composite key decides, so concurrent assigns yield exactly one winner.
        """
        with logfire.span("AssignRole"):
            await self._require_parents(user_id, role_id)

            assignment = await self.repository.assign_role(user_id, role_id)
            await self._invalidate_assignment(user_id, role_id)

            logger.info("Role %s assigned to user %s", role_id, user_id)
            return assignment

    async def unassign_role(self, user_id: UserId, role_id: RoleId) -> None:
        """Move the pair from assigned to unassigned, or raise UserRoleNotAssignedError."""
        with logfire.span("UnassignRole"):
            await self._require_parents(user_id, role_id)

            await self.repository.unassign_role(user_id, role_id)
            await self._invalidate_assignment(user_id, role_id)

            logger.info("Role %s unassigned from user %s", role_id, user_id)

    async def list_roles_for_user(self, user_id: UserId) -> list[Role]:
        with logfire.span("ListRolesForUser"):
            key = self.cache.user_roles_key(user_id)
            cached = await self.cache.read(key, _roles_adapter)
            if cached is not None:
                return cached

            if await self._load_user(user_id) is None:
                raise UserNotFoundError(user_id)

            roles = await self.repository.list_roles_for_user(user_id)
            await self.cache.write(key, _roles_adapter, roles, self.cache.list_ttl)
            return roles

    async def list_users_for_role(self, role_id: RoleId) -> list[User]:
        with logfire.span("ListUsersForRole"):
            key = self.cache.role_users_key(role_id)
            cached = await self.cache.read(key, _users_adapter)
            if cached is not None:
                return cached

            if await self._load_role(role_id) is None:
                raise RoleNotFoundError(role_id)

            users = await self.repository.list_users_for_role(role_id)
            await self.cache.write(key, _users_adapter, users, self.cache.list_ttl)
            return users

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_health(self) -> HealthReport:
        with logfire.span("CheckHealth"):
            try:
                await self.repository.ping()
                database = True
            except RepositoryError as e:
                logger.error("Database health check failed: %s", e.message)
                database = False

            if not self.cache.enabled:
                cache = CacheStatus.DISABLED
            elif await self.cache.ping():
                cache = CacheStatus.OK
            else:
                cache = CacheStatus.UNAVAILABLE

            return HealthReport(
                service=self.service_config.name,
                version=self.service_config.version,
                database=database,
                cache=cache,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _page_size(self, page: int, page_size: int | None) -> int:
        if page_size is None:
            page_size = self.pagination.default_page_size
        validate_pagination(page, page_size, self.pagination.max_page_size)
        return page_size

    async def _load_user(self, user_id: UserId) -> User | None:
        key = self.cache.user_key(user_id)
        user = await self.cache.read(key, _user_adapter)
        if user is not None:
            return user

        user = await self.repository.get_user(user_id)
        if user is not None:
            await self.cache.write(key, _user_adapter, user, self.cache.user_ttl)
        return user

    async def _load_role(self, role_id: RoleId) -> Role | None:
        key = self.cache.role_key(role_id)
        role = await self.cache.read(key, _role_adapter)
        if role is not None:
            return role

        role = await self.repository.get_role(role_id)
        if role is not None:
            await self.cache.write(key, _role_adapter, role, self.cache.role_ttl)
        return role

    async def _require_parents(self, user_id: UserId, role_id: RoleId) -> None:
        if await self._load_user(user_id) is None:
            raise UserNotFoundError(user_id)
        if await self._load_role(role_id) is None:
            raise RoleNotFoundError(role_id)

    async def _invalidate_assignment(self, user_id: UserId, role_id: RoleId) -> None:
        await self.cache.invalidate(
            keys=[
                self.cache.user_key(user_id),
                self.cache.role_key(role_id),
                self.cache.user_roles_key(user_id),
                self.cache.role_users_key(role_id),
            ]
        )
