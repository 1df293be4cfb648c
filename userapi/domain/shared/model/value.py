from typing import Generic, Self, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, RootModel

T = TypeVar("T")


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class RootValueObject(RootModel[T], Generic[T]):
    model_config = ConfigDict(frozen=True)


class Identifier(RootValueObject[UUID]):
    """Opaque UUID identifier. Subclassed per entity kind."""

    @classmethod
    def generate(cls) -> Self:
        return cls(uuid4())

    @classmethod
    def parse(cls, raw: str) -> Self:
        return cls(UUID(raw))

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)
