"""Classify store integrity violations into tagged kinds.

Adapters never match on free-form messages to pick a domain error. They
classify the driver error once into a ``ViolationKind`` and look the kind
up in a per-operation mapping; anything unmapped is a RepositoryError.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Mapping

from sqlalchemy.exc import IntegrityError

from userapi.domain.shared.error import DomainError, RepositoryError


class ViolationKind(StrEnum):
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    NOT_NULL = "not_null"
    OTHER = "other"


@dataclass(frozen=True)
class ConstraintViolation:
    kind: ViolationKind
    constraint: str | None = None


# PostgreSQL SQLSTATE class 23 (integrity constraint violation)
_SQLSTATE_KINDS = {
    "23505": ViolationKind.UNIQUE,
    "23503": ViolationKind.FOREIGN_KEY,
    "23502": ViolationKind.NOT_NULL,
}

# sqlite3 extended result code names (Python >= 3.11)
_SQLITE_KINDS = {
    "SQLITE_CONSTRAINT_UNIQUE": ViolationKind.UNIQUE,
    "SQLITE_CONSTRAINT_PRIMARYKEY": ViolationKind.UNIQUE,
    "SQLITE_CONSTRAINT_FOREIGNKEY": ViolationKind.FOREIGN_KEY,
    "SQLITE_CONSTRAINT_NOTNULL": ViolationKind.NOT_NULL,
}

# Last resort when a driver exposes neither code
_MESSAGE_PREFIXES = (
    ("UNIQUE constraint failed", ViolationKind.UNIQUE),
    ("FOREIGN KEY constraint failed", ViolationKind.FOREIGN_KEY),
    ("NOT NULL constraint failed", ViolationKind.NOT_NULL),
)


def _sqlstate(orig: BaseException) -> str | None:
    for candidate in (orig, orig.__cause__):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


def _sqlite_errorname(orig: BaseException) -> str | None:
    for candidate in (orig, orig.__cause__):
        name = getattr(candidate, "sqlite_errorname", None)
        if isinstance(name, str):
            return name
    return None


def _constraint_name(orig: BaseException) -> str | None:
    for candidate in (orig, orig.__cause__):
        name = getattr(candidate, "constraint_name", None)
        if isinstance(name, str):
            return name
    diag = getattr(orig, "diag", None)
    return getattr(diag, "constraint_name", None)


def classify(exc: IntegrityError) -> ConstraintViolation:
    """Classify an IntegrityError raised by SQLAlchemy."""
    orig = exc.orig
    if orig is None:
        return ConstraintViolation(ViolationKind.OTHER)

    sqlstate = _sqlstate(orig)
    if sqlstate is not None:
        return ConstraintViolation(
            _SQLSTATE_KINDS.get(sqlstate, ViolationKind.OTHER),
            _constraint_name(orig),
        )

    errorname = _sqlite_errorname(orig)
    if errorname in _SQLITE_KINDS:
        return ConstraintViolation(_SQLITE_KINDS[errorname])

    message = str(orig)
    for prefix, kind in _MESSAGE_PREFIXES:
        if message.startswith(prefix):
            return ConstraintViolation(kind)
    return ConstraintViolation(ViolationKind.OTHER)


def translate_violation(
    exc: IntegrityError,
    mapping: Mapping[ViolationKind, Callable[[], DomainError]],
) -> DomainError | RepositoryError:
    """Return the domain error registered for the violation's kind.

    Kinds without an entry become a RepositoryError chained to ``exc``.
    """
    violation = classify(exc)
    factory = mapping.get(violation.kind)
    if factory is not None:
        return factory()
    error = RepositoryError(f"Unexpected {violation.kind} constraint violation")
    error.__cause__ = exc
    return error
