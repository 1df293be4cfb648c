"""Value objects for the user domain."""

from userapi.domain.shared.model.value import Identifier


class UserId(Identifier):
    """Unique identifier for a User."""


class RoleId(Identifier):
    """Unique identifier for a Role."""
