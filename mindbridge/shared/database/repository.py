"""Base repository pattern for database operations.

Concrete repositories map one table to one frozen entity type and
inherit connection handling, error translation and logging.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from psycopg2 import errors

from .connection import ConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in database."""
    pass


class DuplicateError(RepositoryError):
    """Duplicate entity already exists."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common operations."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        table_name: str,
        id_column: str = "id",
    ):
        """Initialize repository.

        Args:
            connection_manager: Database connection manager
            table_name: Name of the database table
            id_column: Primary key column
        """
        self.connection_manager = connection_manager
        self.table_name = table_name
        self.id_column = id_column

        logger.info(
            "REPOSITORY_INITIALIZED",
            extra={"table_name": table_name}
        )

    @abstractmethod
    def _row_to_entity(self, row: tuple) -> T:
        """Convert database row to entity."""

    @abstractmethod
    def _entity_to_params(self, entity: T) -> Dict[str, Any]:
        """Convert entity to a column-name to value mapping."""

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by primary key, or None."""
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT * FROM {self.table_name} WHERE {self.id_column} = %s",
                    (entity_id,)
                )
                row = cur.fetchone()

        if row is None:
            return None
        return self._row_to_entity(row)

    def insert(self, entity: T) -> T:
        """Insert a new entity.

        Raises:
            DuplicateError: If the primary key already exists
        """
        params = self._entity_to_params(entity)
        columns = ", ".join(params)
        placeholders = ", ".join(["%s"] * len(params))
        query = (
            f"INSERT INTO {self.table_name} ({columns}) "
            f"VALUES ({placeholders}) RETURNING *"
        )

        try:
            with self.connection_manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, list(params.values()))
                    row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise DuplicateError(
                f"{self.table_name} {params.get(self.id_column)} already exists"
            ) from e

        return self._row_to_entity(row) if row else entity

    def delete(self, entity_id: str) -> bool:
        """Delete entity by primary key. Returns False if it did not exist."""
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"DELETE FROM {self.table_name} WHERE {self.id_column} = %s",
                    (entity_id,)
                )
                deleted = cur.rowcount > 0
            conn.commit()
        return deleted

    def count(self) -> int:
        """Count total entities."""
        with self.connection_manager.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT COUNT(*) FROM {self.table_name}")
                row = cur.fetchone()
        return row[0] if row else 0
