"""Base class for domain services."""

from dataclasses import dataclass
from typing import dataclass_transform


@dataclass_transform(kw_only_default=True)
class _ServiceMeta(type):
    """Turns every Service subclass into a keyword-only dataclass.

    Collaborators are declared as annotated class attributes and injected by
    name, so positional construction is disallowed.
    """

    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(base, mcs) for base in bases):
            return dataclass(kw_only=True)(cls)
        return cls


class Service(metaclass=_ServiceMeta):
    """Base class for domain services."""
