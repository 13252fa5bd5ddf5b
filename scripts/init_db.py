from __future__ import annotations

import logging

from bizsuite.database.bootstrap import apply_schema, list_tables
from bizsuite.database.connection import DBConfig, DatabaseConnection
from bizsuite.main import configure_logging, load_settings

logger = logging.getLogger("bizsuite.scripts.init_db")


def main() -> None:
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    config = DBConfig.from_mapping(dict(settings.DB_CONFIG))
    conn = DatabaseConnection.get_instance(config)
    apply_schema(conn)
    tables = list_tables(conn)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%s)",
        config.user,
        config.host,
        config.port,
        config.database,
        len(tables),
    )


if __name__ == "__main__":
    main()
