"""Port marker for domain-facing interfaces implemented by infrastructure adapters."""

from typing import Protocol


class Port(Protocol):
    """Marker base for ports. Adapters subclass the concrete port Protocol."""
