"""Unit tests for UserService with a mocked repository."""

from unittest.mock import AsyncMock

import pytest

from userapi.config import CacheConfig, PaginationConfig, ServiceConfig
from userapi.domain.shared.error import (
    CacheError,
    DuplicateIdentityRefError,
    DuplicateRoleNameError,
    RepositoryError,
    RoleNotFoundError,
    UserAlreadyHasRoleError,
    UserNotFoundError,
    UserRoleNotAssignedError,
    ValidationError,
)
from userapi.domain.user.model import CacheStatus, Role, RoleId, User, UserId, UserRole
from userapi.domain.user.port.cache import CacheBackend
from userapi.domain.user.port.repository import UserRoleRepository
from userapi.domain.user.service import EntityCache, UserService
from userapi.infrastructure.cache.memory import MemoryCacheBackend


def make_repo() -> AsyncMock:
    return AsyncMock(spec=UserRoleRepository)


def make_user_service(
    repo: AsyncMock | None = None,
    backend: CacheBackend | None = None,
    pagination: PaginationConfig | None = None,
) -> UserService:
    return UserService(
        repository=repo or make_repo(),
        cache=EntityCache(backend, CacheConfig(enabled=backend is not None)),
        pagination=pagination or PaginationConfig(default_page_size=20, max_page_size=100),
        service_config=ServiceConfig(name="user-api", version="1.2.3"),
    )


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_creates_user(self):
        repo = make_repo()
        user = User.create("auth0|a")
        repo.get_user_by_identity_ref.return_value = None
        repo.create_user.return_value = user
        service = make_user_service(repo)

        result = await service.create_user("auth0|a")

        assert result == user
        repo.create_user.assert_awaited_once_with("auth0|a")

    @pytest.mark.asyncio
    async def test_empty_reference_never_reaches_repository(self):
        repo = make_repo()
        service = make_user_service(repo)

        with pytest.raises(ValidationError):
            await service.create_user("")

        repo.get_user_by_identity_ref.assert_not_awaited()
        repo.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_detected_by_pre_check(self):
        repo = make_repo()
        repo.get_user_by_identity_ref.return_value = User.create("auth0|a")
        service = make_user_service(repo)

        with pytest.raises(DuplicateIdentityRefError):
            await service.create_user("auth0|a")

        repo.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_invalidates_user_lists(self):
        repo = make_repo()
        backend = MemoryCacheBackend()
        service = make_user_service(repo, backend)
        await backend.set(service.cache.users_list_key(1, 20), "[]", 60)
        repo.get_user_by_identity_ref.return_value = None
        repo.create_user.return_value = User.create("auth0|a")

        await service.create_user("auth0|a")

        assert await backend.get(service.cache.users_list_key(1, 20)) is None


class TestReads:
    @pytest.mark.asyncio
    async def test_get_user_populates_cache(self):
        repo = make_repo()
        user = User.create("auth0|a")
        repo.get_user.return_value = user
        service = make_user_service(repo, MemoryCacheBackend())

        first = await service.get_user(user.id)
        second = await service.get_user(user.id)

        assert first == second == user
        repo.get_user.assert_awaited_once_with(user.id)

    @pytest.mark.asyncio
    async def test_get_missing_user_raises(self):
        repo = make_repo()
        repo.get_user.return_value = None
        service = make_user_service(repo)

        with pytest.raises(UserNotFoundError):
            await service.get_user(UserId.generate())

    @pytest.mark.asyncio
    async def test_get_missing_role_raises(self):
        repo = make_repo()
        repo.get_role.return_value = None
        service = make_user_service(repo)

        with pytest.raises(RoleNotFoundError):
            await service.get_role(RoleId.generate())

    @pytest.mark.asyncio
    async def test_cache_failure_falls_through_to_repository(self):
        repo = make_repo()
        user = User.create("auth0|a")
        repo.get_user.return_value = user
        backend = AsyncMock(spec=CacheBackend)
        backend.get.side_effect = CacheError("down")
        backend.set.side_effect = CacheError("down")
        service = make_user_service(repo, backend)

        assert await service.get_user(user.id) == user

    @pytest.mark.asyncio
    async def test_list_users_uses_default_page_size(self):
        repo = make_repo()
        users = [User.create(f"auth0|{i}") for i in range(2)]
        repo.list_users.return_value = (users, 5)
        service = make_user_service(repo, pagination=PaginationConfig(default_page_size=2))

        page = await service.list_users()

        repo.list_users.assert_awaited_once_with(1, 2)
        assert page.items == users
        assert page.total == 5
        assert page.total_pages == 3

    @pytest.mark.asyncio
    async def test_list_users_served_from_cache(self):
        repo = make_repo()
        repo.list_users.return_value = ([User.create("auth0|a")], 1)
        service = make_user_service(repo, MemoryCacheBackend())

        first = await service.list_users(page=1, page_size=10)
        second = await service.list_users(page=1, page_size=10)

        assert first == second
        repo.list_users.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "page_size"), [(0, 10), (1, 0), (1, 101)])
    async def test_list_rejects_bad_pagination(self, page: int, page_size: int):
        repo = make_repo()
        service = make_user_service(repo)

        with pytest.raises(ValidationError):
            await service.list_roles(page=page, page_size=page_size)

        repo.list_roles.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_roles_for_missing_user_raises(self):
        repo = make_repo()
        repo.get_user.return_value = None
        service = make_user_service(repo)

        with pytest.raises(UserNotFoundError):
            await service.list_roles_for_user(UserId.generate())

        repo.list_roles_for_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_users_for_missing_role_raises(self):
        repo = make_repo()
        repo.get_role.return_value = None
        service = make_user_service(repo)

        with pytest.raises(RoleNotFoundError):
            await service.list_users_for_role(RoleId.generate())

    @pytest.mark.asyncio
    async def test_find_by_identity_ref_is_not_an_error_when_absent(self):
        repo = make_repo()
        repo.get_user_by_identity_ref.return_value = None
        service = make_user_service(repo)

        assert await service.find_user_by_identity_ref("auth0|nobody") is None


class TestDeletes:
    @pytest.mark.asyncio
    async def test_delete_missing_user_raises(self):
        repo = make_repo()
        repo.delete_user.return_value = False
        service = make_user_service(repo)

        with pytest.raises(UserNotFoundError):
            await service.delete_user(UserId.generate())

    @pytest.mark.asyncio
    async def test_delete_user_invalidates_after_commit(self):
        repo = make_repo()
        backend = MemoryCacheBackend()
        service = make_user_service(repo, backend)
        user_id, role_id = UserId.generate(), RoleId.generate()
        cache = service.cache
        for key in (
            cache.user_key(user_id),
            cache.user_roles_key(user_id),
            cache.users_list_key(1, 20),
            cache.role_users_key(role_id),
        ):
            await backend.set(key, "{}", 60)
        repo.delete_user.return_value = True

        await service.delete_user(user_id)

        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_failed_delete_leaves_cache_untouched(self):
        repo = make_repo()
        backend = MemoryCacheBackend()
        service = make_user_service(repo, backend)
        user_id = UserId.generate()
        await backend.set(service.cache.user_key(user_id), "{}", 60)
        repo.delete_user.side_effect = RepositoryError("disk full")

        with pytest.raises(RepositoryError):
            await service.delete_user(user_id)

        assert await backend.get(service.cache.user_key(user_id)) == "{}"

    @pytest.mark.asyncio
    async def test_delete_missing_role_raises(self):
        repo = make_repo()
        repo.delete_role.return_value = False
        service = make_user_service(repo)

        with pytest.raises(RoleNotFoundError):
            await service.delete_role(RoleId.generate())


class TestRoles:
    @pytest.mark.asyncio
    async def test_create_role_stores_trimmed_name(self):
        repo = make_repo()
        repo.get_role_by_name.return_value = None
        repo.create_role.return_value = Role.create("editor")
        service = make_user_service(repo)

        await service.create_role("  editor  ")

        repo.get_role_by_name.assert_awaited_once_with("editor")
        repo.create_role.assert_awaited_once_with("editor")

    @pytest.mark.asyncio
    async def test_blank_role_name_rejected_with_field(self):
        service = make_user_service()

        with pytest.raises(ValidationError) as exc_info:
            await service.create_role("   ")

        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_concurrent_create_resolves_through_constraint(self):
        """Both callers pass the pre-check; the store constraint decides."""
        repo = make_repo()
        repo.get_role_by_name.return_value = None
        repo.create_role.side_effect = [Role.create("x"), DuplicateRoleNameError("x")]
        service = make_user_service(repo)

        await service.create_role("x")
        with pytest.raises(DuplicateRoleNameError):
            await service.create_role("x")

    @pytest.mark.asyncio
    async def test_rename_to_own_name_is_allowed(self):
        repo = make_repo()
        role = Role.create("editor")
        repo.get_role_by_name.return_value = role
        repo.rename_role.return_value = role.renamed("Editor")
        service = make_user_service(repo)

        result = await service.rename_role(role.id, "Editor")

        assert result.name == "Editor"

    @pytest.mark.asyncio
    async def test_rename_to_taken_name_raises(self):
        repo = make_repo()
        repo.get_role_by_name.return_value = Role.create("admin")
        service = make_user_service(repo)

        with pytest.raises(DuplicateRoleNameError):
            await service.rename_role(RoleId.generate(), "admin")

        repo.rename_role.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rename_missing_role_raises(self):
        repo = make_repo()
        repo.get_role_by_name.return_value = None
        repo.rename_role.return_value = None
        service = make_user_service(repo)

        with pytest.raises(RoleNotFoundError):
            await service.rename_role(RoleId.generate(), "admin")


class TestAssignments:
    @pytest.mark.asyncio
    async def test_assign_checks_user_first(self):
        repo = make_repo()
        repo.get_user.return_value = None
        service = make_user_service(repo)

        with pytest.raises(UserNotFoundError):
            await service.assign_role(UserId.generate(), RoleId.generate())

        repo.assign_role.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_assign_checks_role(self):
        repo = make_repo()
        repo.get_user.return_value = User.create("auth0|a")
        repo.get_role.return_value = None
        service = make_user_service(repo)

        with pytest.raises(RoleNotFoundError):
            await service.assign_role(UserId.generate(), RoleId.generate())

    @pytest.mark.asyncio
    async def test_second_assign_propagates_conflict(self):
        repo = make_repo()
        user, role = User.create("auth0|a"), Role.create("admin")
        repo.get_user.return_value = user
        repo.get_role.return_value = role
        repo.assign_role.side_effect = [
            UserRole.create(user.id, role.id),
            UserAlreadyHasRoleError(user.id, role.id),
        ]
        service = make_user_service(repo)

        await service.assign_role(user.id, role.id)
        with pytest.raises(UserAlreadyHasRoleError):
            await service.assign_role(user.id, role.id)

    @pytest.mark.asyncio
    async def test_unassign_not_assigned_propagates(self):
        repo = make_repo()
        user, role = User.create("auth0|a"), Role.create("viewer")
        repo.get_user.return_value = user
        repo.get_role.return_value = role
        repo.unassign_role.side_effect = UserRoleNotAssignedError(user.id, role.id)
        service = make_user_service(repo)

        with pytest.raises(UserRoleNotAssignedError):
            await service.unassign_role(user.id, role.id)

    @pytest.mark.asyncio
    async def test_assign_invalidates_membership_listings(self):
        repo = make_repo()
        backend = MemoryCacheBackend()
        service = make_user_service(repo, backend)
        user, role = User.create("auth0|a"), Role.create("admin")
        repo.get_user.return_value = user
        repo.get_role.return_value = role
        repo.list_roles_for_user.return_value = []
        repo.assign_role.return_value = UserRole.create(user.id, role.id)

        assert await service.list_roles_for_user(user.id) == []
        await service.assign_role(user.id, role.id)
        repo.list_roles_for_user.return_value = [role]

        assert await service.list_roles_for_user(user.id) == [role]


class TestCheckHealth:
    @pytest.mark.asyncio
    async def test_healthy_without_cache(self):
        service = make_user_service()

        report = await service.check_health()

        assert report.healthy is True
        assert report.database is True
        assert report.cache is CacheStatus.DISABLED
        assert report.version == "1.2.3"

    @pytest.mark.asyncio
    async def test_database_down(self):
        repo = make_repo()
        repo.ping.side_effect = RepositoryError("unreachable")
        service = make_user_service(repo, MemoryCacheBackend())

        report = await service.check_health()

        assert report.healthy is False
        assert report.cache is CacheStatus.OK

    @pytest.mark.asyncio
    async def test_cache_down_is_degraded_not_unhealthy(self):
        backend = AsyncMock(spec=CacheBackend)
        backend.ping.side_effect = CacheError("down")
        service = make_user_service(backend=backend)

        report = await service.check_health()

        assert report.healthy is True
        assert report.cache is CacheStatus.UNAVAILABLE
