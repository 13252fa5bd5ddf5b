from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig, DatabaseConnection

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
HANDLER_NAME = "bizsuite"

logger = logging.getLogger(__name__)


def configure_logging(level: str | int = "INFO") -> None:
    """Install the bizsuite stream handler; handlers added by others are kept."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def bootstrap() -> Container:
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = dict(settings.DB_CONFIG)
    logger.info(
        "Using settings %s (db=%s@%s:%s/%s)",
        settings.__name__,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
        apply_schema(conn)
        logger.info("Schema ready (tables=%s)", len(list_tables(conn)))

    return build_container(db_config=db_config, settings=settings)
