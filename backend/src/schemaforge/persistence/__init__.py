"""Persistence layer - database configuration and transaction boundary."""

from schemaforge.persistence.config import DatabaseConfig, create_database
from schemaforge.persistence.database import Database

__all__ = ["Database", "DatabaseConfig", "create_database"]
