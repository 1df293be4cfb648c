from dishka import AsyncContainer, Provider, Scope, from_context, make_async_container

from userapi.config import Config
from userapi.domain.user.util.di import UserProvider
from userapi.infrastructure.cache import CacheProvider
from userapi.infrastructure.persistence import PersistenceProvider


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    config = config or Config()

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        CacheProvider(),
        UserProvider(),
        context={Config: config},
    )
