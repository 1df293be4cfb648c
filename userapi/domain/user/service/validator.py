"""Input rules applied before any write reaches the repository.

Pure functions: no I/O, no state. Each failure names the offending field so
the boundary layer can report it.
"""

from uuid import UUID

from userapi.domain.shared.error import ValidationError

ROLE_NAME_MAX_LENGTH = 80
IDENTITY_REF_MAX_LENGTH = 255


def validate_role_name(name: str) -> str:
    """Return the trimmed role name."""
    trimmed = name.strip()
    if not trimmed:
        raise ValidationError("Role name must not be empty", field="name")
    if len(trimmed) > ROLE_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Role name must be at most {ROLE_NAME_MAX_LENGTH} characters",
            field="name",
        )
    return trimmed


def validate_external_identity_ref(external_identity_ref: str) -> str:
    """Return the identity reference unchanged once it is known to be usable."""
    if not external_identity_ref or not external_identity_ref.strip():
        raise ValidationError(
            "External identity reference must not be empty",
            field="external_identity_ref",
        )
    if len(external_identity_ref) > IDENTITY_REF_MAX_LENGTH:
        raise ValidationError(
            f"External identity reference must be at most {IDENTITY_REF_MAX_LENGTH} characters",
            field="external_identity_ref",
        )
    return external_identity_ref


def validate_pagination(page: int, page_size: int, max_page_size: int) -> None:
    """Reject out-of-range pagination input. Values are never clamped."""
    if page < 1:
        raise ValidationError("page must be >= 1", field="page")
    if page_size < 1:
        raise ValidationError("page_size must be >= 1", field="page_size")
    if page_size > max_page_size:
        raise ValidationError(f"page_size must be <= {max_page_size}", field="page_size")


def role_name_key(name: str, *, case_sensitive: bool) -> str:
    """Normalised form of a role name used for uniqueness and lookup."""
    return name if case_sensitive else name.casefold()


def parse_identifier(raw: str, field: str) -> UUID:
    """Parse a caller-supplied id, e.g. from a URL path segment."""
    try:
        return UUID(raw)
    except (AttributeError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {field}: {raw!r}", field=field) from e
