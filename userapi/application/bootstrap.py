"""Process startup for hosts embedding the user API core.

A transport layer calls ``bootstrap()`` once, then resolves a UserService
per request::

    container = bootstrap()
    async with container() as request:
        service = await request.get(UserService)
        ...
    await container.close()
"""

import logging

import logfire
from dishka import AsyncContainer

from userapi.application.di import create_container
from userapi.config import Config, configure_logging
from userapi.infrastructure.persistence.migrate import prepare_database

logger = logging.getLogger(__name__)


def configure_telemetry(config: Config) -> None:
    """Configure logfire. Spans are only exported when a token is present."""
    logfire.configure(
        service_name=config.service.name,
        service_version=config.service.version,
        environment=config.service.env,
        send_to_logfire="if-token-present",
        console=False,
    )


def bootstrap(config: Config | None = None) -> AsyncContainer:
    """Configure logging and telemetry, migrate the schema, build the container.

    Synchronous: migrations run before any event loop work starts.
    """
    config = config or Config()

    configure_logging(config.logging)
    configure_telemetry(config)
    logger.info(
        "Starting %s v%s (%s)", config.service.name, config.service.version, config.service.env
    )

    prepare_database(config.database)
    return create_container(config)
