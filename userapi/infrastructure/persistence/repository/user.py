"""SQLAlchemy implementation of UserRoleRepository (SQLite and PostgreSQL)."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import delete, func, insert, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from userapi.domain.shared.error import (
    DuplicateIdentityRefError,
    DuplicateRoleNameError,
    RepositoryError,
    RoleNotFoundError,
    UserAlreadyHasRoleError,
    UserNotFoundError,
    UserRoleNotAssignedError,
)
from userapi.domain.shared.model.page import offset_for
from userapi.domain.user.model import Role, RoleId, User, UserId, UserRole
from userapi.domain.user.port.repository import UserRoleRepository
from userapi.domain.user.service.validator import role_name_key
from userapi.infrastructure.persistence.constraint import (
    ViolationKind,
    classify,
    translate_violation,
)
from userapi.infrastructure.persistence.mappers.user import (
    role_to_dict,
    row_to_role,
    row_to_user,
    user_role_to_dict,
    user_to_dict,
)
from userapi.infrastructure.persistence.tables import (
    roles_table,
    user_roles_table,
    users_table,
)

logger = logging.getLogger(__name__)


class SQLAlchemyUserRoleRepository(UserRoleRepository):
    """UserRoleRepository on SQLAlchemy Core.

    Every method runs in its own transaction on the injected session.
    IntegrityError is classified and mapped per operation; any other
    SQLAlchemy failure becomes a RepositoryError with the cause chained.
    """

    def __init__(self, session: AsyncSession, case_sensitive_role_names: bool = True) -> None:
        self.session = session
        self.case_sensitive_role_names = case_sensitive_role_names

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session.begin():
                yield self.session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database operation failed: %s", e)
            raise RepositoryError(f"Database operation failed: {e.__class__.__name__}") from e

    def _name_key(self, name: str) -> str:
        return role_name_key(name, case_sensitive=self.case_sensitive_role_names)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, external_identity_ref: str) -> User:
        user = User.create(external_identity_ref)
        try:
            async with self._transaction() as session:
                await session.execute(insert(users_table).values(**user_to_dict(user)))
        except IntegrityError as e:
            raise translate_violation(
                e, {ViolationKind.UNIQUE: lambda: DuplicateIdentityRefError(external_identity_ref)}
            ) from e
        return user

    async def get_user(self, user_id: UserId) -> User | None:
        async with self._transaction() as session:
            stmt = select(users_table).where(users_table.c.id == str(user_id))
            row = (await session.execute(stmt)).mappings().first()
        return row_to_user(dict(row)) if row else None

    async def get_user_by_identity_ref(self, external_identity_ref: str) -> User | None:
        async with self._transaction() as session:
            stmt = select(users_table).where(
                users_table.c.external_identity_ref == external_identity_ref
            )
            row = (await session.execute(stmt)).mappings().first()
        return row_to_user(dict(row)) if row else None

    async def list_users(self, page: int, page_size: int) -> tuple[list[User], int]:
        async with self._transaction() as session:
            total = await session.scalar(select(func.count()).select_from(users_table))
            stmt = (
                select(users_table)
                .order_by(users_table.c.created_at, users_table.c.id)
                .limit(page_size)
                .offset(offset_for(page, page_size))
            )
            rows = (await session.execute(stmt)).mappings().all()
        return [row_to_user(dict(r)) for r in rows], total or 0

    async def delete_user(self, user_id: UserId) -> bool:
        async with self._transaction() as session:
            # Children first; the FK cascade covers the same ground.
            await session.execute(
                delete(user_roles_table).where(user_roles_table.c.user_id == str(user_id))
            )
            result = await session.execute(
                delete(users_table).where(users_table.c.id == str(user_id))
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def create_role(self, name: str) -> Role:
        role = Role.create(name)
        try:
            async with self._transaction() as session:
                await session.execute(
                    insert(roles_table).values(**role_to_dict(role, self._name_key(name)))
                )
        except IntegrityError as e:
            raise translate_violation(
                e, {ViolationKind.UNIQUE: lambda: DuplicateRoleNameError(name)}
            ) from e
        return role

    async def get_role(self, role_id: RoleId) -> Role | None:
        async with self._transaction() as session:
            stmt = select(roles_table).where(roles_table.c.id == str(role_id))
            row = (await session.execute(stmt)).mappings().first()
        return row_to_role(dict(row)) if row else None

    async def get_role_by_name(self, name: str) -> Role | None:
        async with self._transaction() as session:
            stmt = select(roles_table).where(roles_table.c.name_key == self._name_key(name))
            row = (await session.execute(stmt)).mappings().first()
        return row_to_role(dict(row)) if row else None

    async def list_roles(self, page: int, page_size: int) -> tuple[list[Role], int]:
        async with self._transaction() as session:
            total = await session.scalar(select(func.count()).select_from(roles_table))
            stmt = (
                select(roles_table)
                .order_by(roles_table.c.created_at, roles_table.c.id)
                .limit(page_size)
                .offset(offset_for(page, page_size))
            )
            rows = (await session.execute(stmt)).mappings().all()
        return [row_to_role(dict(r)) for r in rows], total or 0

    async def rename_role(self, role_id: RoleId, name: str) -> Role | None:
        try:
            async with self._transaction() as session:
                result = await session.execute(
                    update(roles_table)
                    .where(roles_table.c.id == str(role_id))
                    .values(name=name, name_key=self._name_key(name))
                )
                if result.rowcount == 0:
                    return None
                stmt = select(roles_table).where(roles_table.c.id == str(role_id))
                row = (await session.execute(stmt)).mappings().one()
        except IntegrityError as e:
            raise translate_violation(
                e, {ViolationKind.UNIQUE: lambda: DuplicateRoleNameError(name)}
            ) from e
        return row_to_role(dict(row))

    async def delete_role(self, role_id: RoleId) -> bool:
        async with self._transaction() as session:
            await session.execute(
                delete(user_roles_table).where(user_roles_table.c.role_id == str(role_id))
            )
            result = await session.execute(
                delete(roles_table).where(roles_table.c.id == str(role_id))
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    async def assign_role(self, user_id: UserId, role_id: RoleId) -> UserRole:
        assignment = UserRole.create(user_id, role_id)
        try:
            async with self._transaction() as session:
                await session.execute(
                    insert(user_roles_table).values(**user_role_to_dict(assignment))
                )
        except IntegrityError as e:
            if classify(e).kind is ViolationKind.FOREIGN_KEY:
                # A parent vanished between the caller's check and the insert
                raise await self._missing_parent(user_id, role_id) from e
            raise translate_violation(
                e, {ViolationKind.UNIQUE: lambda: UserAlreadyHasRoleError(user_id, role_id)}
            ) from e
        return assignment

    async def unassign_role(self, user_id: UserId, role_id: RoleId) -> None:
        async with self._transaction() as session:
            result = await session.execute(
                delete(user_roles_table).where(
                    user_roles_table.c.user_id == str(user_id),
                    user_roles_table.c.role_id == str(role_id),
                )
            )
        if result.rowcount == 0:
            raise UserRoleNotAssignedError(user_id, role_id)

    async def list_roles_for_user(self, user_id: UserId) -> list[Role]:
        async with self._transaction() as session:
            stmt = (
                select(roles_table)
                .join(user_roles_table, user_roles_table.c.role_id == roles_table.c.id)
                .where(user_roles_table.c.user_id == str(user_id))
                .order_by(roles_table.c.name, roles_table.c.id)
            )
            rows = (await session.execute(stmt)).mappings().all()
        return [row_to_role(dict(r)) for r in rows]

    async def list_users_for_role(self, role_id: RoleId) -> list[User]:
        async with self._transaction() as session:
            stmt = (
                select(users_table)
                .join(user_roles_table, user_roles_table.c.user_id == users_table.c.id)
                .where(user_roles_table.c.role_id == str(role_id))
                .order_by(users_table.c.created_at, users_table.c.id)
            )
            rows = (await session.execute(stmt)).mappings().all()
        return [row_to_user(dict(r)) for r in rows]

    async def ping(self) -> None:
        async with self._transaction() as session:
            await session.execute(text("SELECT 1"))

    async def _missing_parent(
        self, user_id: UserId, role_id: RoleId
    ) -> UserNotFoundError | RoleNotFoundError:
        if await self.get_user(user_id) is None:
            return UserNotFoundError(user_id)
        return RoleNotFoundError(role_id)
