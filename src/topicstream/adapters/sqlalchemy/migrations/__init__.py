"""Bundled Alembic scripts for the ``stored_value`` table."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from topicstream.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

log = logging.getLogger(__name__)


def _alembic_config(*, connection: Connection | None = None, url: str | None = None) -> Config:
    # No alembic.ini ships with the package; everything is set programmatically.
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if connection is not None:
        config.attributes["connection"] = connection
    elif url is not None:
        config.set_main_option("sqlalchemy.url", url)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the schema to the latest revision, on ``engine`` when one is given."""

    if engine is None:
        url = database_uri or get_database_config().uri
        command.upgrade(_alembic_config(url=url), "head")
        return
    with engine.begin() as connection:
        command.upgrade(_alembic_config(connection=connection), "head")
    log.debug("Schema at head on %s", engine.url.render_as_string(hide_password=True))
