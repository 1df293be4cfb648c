"""Error hierarchy for the user API core.

Error layers:
- UserApiError: Base class for all user API errors
- DomainError: Business rule violations, validation failures (4xx at the boundary)
- InfrastructureError: System-level failures like storage/cache issues (5xx at the boundary)

Each error carries a stable ``code`` that the transport layer maps to its own
status codes. The core never decides transport status codes itself.
"""


class UserApiError(Exception):
    """Base class for all user API errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(UserApiError):
    """Base class for domain/business errors."""


class ValidationError(DomainError):
    """Input validation failed. Never reaches the store."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="validation_error")
        self.field = field


class NotFoundError(DomainError):
    """Resource not found."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: object) -> None:
        super().__init__(f"User {user_id} not found", code="user_not_found")
        self.user_id = user_id


class RoleNotFoundError(NotFoundError):
    def __init__(self, role_id: object) -> None:
        super().__init__(f"Role {role_id} not found", code="role_not_found")
        self.role_id = role_id


class ConflictError(DomainError):
    """Resource already exists or uniqueness violated."""


class DuplicateIdentityRefError(ConflictError):
    def __init__(self, external_identity_ref: str) -> None:
        super().__init__(
            f"A user with identity reference {external_identity_ref!r} already exists",
            code="duplicate_identity_ref",
        )
        self.external_identity_ref = external_identity_ref


class DuplicateRoleNameError(ConflictError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Role {name!r} already exists", code="duplicate_role_name")
        self.name = name


class UserAlreadyHasRoleError(ConflictError):
    def __init__(self, user_id: object, role_id: object) -> None:
        super().__init__(
            f"User {user_id} already has role {role_id}",
            code="user_already_has_role",
        )
        self.user_id = user_id
        self.role_id = role_id


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class UserRoleNotAssignedError(InvalidStateError):
    def __init__(self, user_id: object, role_id: object) -> None:
        super().__init__(
            f"Role {role_id} is not assigned to user {user_id}",
            code="user_role_not_assigned",
        )
        self.user_id = user_id
        self.role_id = role_id


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(UserApiError):
    """Base class for infrastructure/system errors."""


class RepositoryError(InfrastructureError):
    """Durable store failed. The underlying cause is chained via ``__cause__``."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="repository_error")


class CacheError(InfrastructureError):
    """Cache backend failed. Absorbed by the cache layer, never surfaced to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="cache_error")


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
