"""Entity base: immutable records compared by identity, not by field values."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Base for domain entities.

    Subclasses expose their identity through ``identity``; two entities of the
    same type are equal when their identities are equal, whatever the other
    fields hold (a stale cached copy still equals the stored row).
    """

    model_config = ConfigDict(frozen=True)

    @property
    def identity(self) -> Any:
        return self.id  # type: ignore[attr-defined]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or type(other) is not type(self):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.identity))
