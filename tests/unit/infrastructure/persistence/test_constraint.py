"""Unit tests for integrity violation classification."""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError

from userapi.domain.shared.error import DuplicateRoleNameError, RepositoryError
from userapi.infrastructure.persistence.constraint import (
    ViolationKind,
    classify,
    translate_violation,
)


class FakeAsyncpgError(Exception):
    def __init__(self, sqlstate: str, constraint_name: str | None = None) -> None:
        super().__init__("violation")
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


class FakeSqliteError(Exception):
    def __init__(self, message: str, errorname: str) -> None:
        super().__init__(message)
        self.sqlite_errorname = errorname


def integrity_error(orig: BaseException) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, orig)


class TestClassify:
    @pytest.mark.parametrize(
        ("sqlstate", "kind"),
        [
            ("23505", ViolationKind.UNIQUE),
            ("23503", ViolationKind.FOREIGN_KEY),
            ("23502", ViolationKind.NOT_NULL),
            ("23514", ViolationKind.OTHER),
        ],
    )
    def test_postgres_sqlstate(self, sqlstate: str, kind: ViolationKind):
        violation = classify(integrity_error(FakeAsyncpgError(sqlstate, "uq_roles_name_key")))

        assert violation.kind is kind
        assert violation.constraint == "uq_roles_name_key"

    def test_sqlstate_on_chained_driver_error(self):
        wrapper = Exception("wrapped")
        wrapper.__cause__ = FakeAsyncpgError("23505", "pk_user_roles")

        violation = classify(integrity_error(wrapper))

        assert violation.kind is ViolationKind.UNIQUE
        assert violation.constraint == "pk_user_roles"

    @pytest.mark.parametrize(
        ("errorname", "kind"),
        [
            ("SQLITE_CONSTRAINT_UNIQUE", ViolationKind.UNIQUE),
            ("SQLITE_CONSTRAINT_PRIMARYKEY", ViolationKind.UNIQUE),
            ("SQLITE_CONSTRAINT_FOREIGNKEY", ViolationKind.FOREIGN_KEY),
            ("SQLITE_CONSTRAINT_NOTNULL", ViolationKind.NOT_NULL),
        ],
    )
    def test_sqlite_error_name(self, errorname: str, kind: ViolationKind):
        violation = classify(integrity_error(FakeSqliteError("constraint failed", errorname)))

        assert violation.kind is kind

    def test_message_fallback(self):
        orig = sqlite3.IntegrityError("FOREIGN KEY constraint failed")

        assert classify(integrity_error(orig)).kind is ViolationKind.FOREIGN_KEY

    def test_unknown_is_other(self):
        assert classify(integrity_error(Exception("CHECK failed"))).kind is ViolationKind.OTHER


class TestTranslateViolation:
    def test_mapped_kind(self):
        exc = integrity_error(FakeAsyncpgError("23505"))

        error = translate_violation(exc, {ViolationKind.UNIQUE: lambda: DuplicateRoleNameError("x")})

        assert isinstance(error, DuplicateRoleNameError)

    def test_unmapped_kind_is_repository_error(self):
        exc = integrity_error(FakeAsyncpgError("23503"))

        error = translate_violation(exc, {ViolationKind.UNIQUE: lambda: DuplicateRoleNameError("x")})

        assert isinstance(error, RepositoryError)
        assert error.__cause__ is exc
