"""Health report returned by the service health check."""

from enum import StrEnum

from userapi.domain.shared.model.value import ValueObject


class CacheStatus(StrEnum):
    OK = "ok"
    DISABLED = "disabled"
    UNAVAILABLE = "unavailable"


class HealthReport(ValueObject):
    service: str
    version: str
    database: bool
    cache: CacheStatus

    @property
    def healthy(self) -> bool:
        # A degraded cache is still a working service.
        return self.database
