"""
Configuration and entity names for the operational record store.
"""

from dataclasses import dataclass

# Entity name -> backing table
ENTITY_TABLES = {
    "sales": "sales",
    "purchases": "purchases",
    "products": "products",
    "inventory": "inventory",
    "production_tickets": "production_tickets",
    "attendance": "attendance",
    "cash_flow": "cash_flow",
}


@dataclass
class RecordStoreConfig:
    """Connection settings for the PostgreSQL record store"""

    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "operations_db"
    postgres_user: str = "operations"
    postgres_password: str = "operations_password"
