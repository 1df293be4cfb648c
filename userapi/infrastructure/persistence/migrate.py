"""Database migration utilities.

Migrations are run synchronously at startup, before the container hands out
async sessions. This keeps the async/sync boundary clean.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from userapi.config import DatabaseConfig
from userapi.domain.shared.error import ConfigurationError

logger = logging.getLogger(__name__)

# Project root where alembic.ini and migrations/ live
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def to_sync_url(database_url: str) -> str:
    """Convert async database URL to sync equivalent for migrations.

    Alembic runs synchronously, so we need sync drivers:
    - sqlite+aiosqlite:/// -> sqlite:///
    - postgresql+asyncpg:// -> postgresql://
    """
    url = database_url.replace("+aiosqlite", "").replace("+asyncpg", "")
    if "sqlite:///" in url:
        parts = url.split("///", 1)
        if len(parts) == 2 and parts[1].startswith("~"):
            url = f"sqlite:///{Path(parts[1]).expanduser()}"
    return url


def get_alembic_config(database_url: str) -> AlembicConfig:
    """Create Alembic config with the given database URL."""
    alembic_ini = PROJECT_ROOT / "alembic.ini"
    if not alembic_ini.exists():
        raise ConfigurationError(f"alembic.ini not found at {alembic_ini}")
    config = AlembicConfig(str(alembic_ini))
    # Independent of the working directory the process was started from
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", to_sync_url(database_url))
    # The application has already configured logging
    config.attributes["configure_logger"] = False
    return config


def run_migrations(database_url: str) -> None:
    """Upgrade the schema to head. Synchronous; call before serving."""
    sync_url = to_sync_url(database_url)

    if sync_url.startswith("sqlite:///") and ":memory:" not in sync_url:
        db_path = sync_url.split("///")[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    command.upgrade(get_alembic_config(database_url), "head")
    logger.info("Database migrations complete")


def prepare_database(config: DatabaseConfig) -> None:
    """Run migrations when ``database.auto_migrate`` is set."""
    if not config.auto_migrate:
        logger.info("Skipping migrations (database.auto_migrate is off)")
        return
    run_migrations(config.url)
