from dishka import Provider, Scope, provide

from userapi.config import Config, PaginationConfig, ServiceConfig
from userapi.domain.user.service import UserService


class UserProvider(Provider):
    service = provide(UserService, scope=Scope.REQUEST)

    @provide(scope=Scope.APP)
    def get_pagination_config(self, config: Config) -> PaginationConfig:
        return config.pagination

    @provide(scope=Scope.APP)
    def get_service_config(self, config: Config) -> ServiceConfig:
        return config.service
