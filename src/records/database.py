"""
PostgreSQL backend for the record store read contract.
"""

import structlog

from src.core.database import PostgresConnection

from .models import ENTITY_TABLES, RecordStoreConfig
from .store import RecordStore

logger = structlog.get_logger(__name__)


class PostgresRecordStore(PostgresConnection, RecordStore):
    """Serves get_all() from one table per entity"""

    def __init__(self, config: RecordStoreConfig):
        super().__init__(
            host=config.postgres_host,
            port=config.postgres_port,
            database=config.postgres_database,
            user=config.postgres_user,
            password=config.postgres_password,
        )
        self.config = config

    def get_all(self, entity: str) -> list[dict]:
        """Load every row of the entity's table

        Raises:
            ValueError: If the entity has no known table
        """
        table = ENTITY_TABLES.get(entity)
        if table is None:
            available = ", ".join(ENTITY_TABLES)
            raise ValueError(f"Unknown entity '{entity}'. Available entities: {available}")

        # Table names come from the whitelist above, never from the caller
        rows = self.fetch_all(f"SELECT * FROM {table}")
        logger.debug("Loaded records", entity=entity, rows=len(rows))
        return rows
