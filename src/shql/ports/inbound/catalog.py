"""Catalog port for the database registry.

The catalog file holds one row per database: name, table count, created
and modified epochs. Dropped databases keep their row under a tombstone
key ``<epoch>!<name>`` unless hard-deleted.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from shql.domain.entities import CatalogEntry


class CatalogPort(Protocol):
    """Protocol for database registry operations.

    Every call reads the catalog file afresh; every mutation replaces it
    atomically. Nothing is cached between calls.
    """

    @abstractmethod
    def list(self) -> list[CatalogEntry]:
        """Active databases with their counts."""
        ...

    @abstractmethod
    def get(self, name: str) -> CatalogEntry:
        """Look up an active database or raise NotFoundError."""
        ...

    @abstractmethod
    def exists(self, name: str, case_insensitive: bool = False) -> bool:
        """Check for an active database.

        Raises:
            DuplicateError: If a case-insensitive lookup matches more than
                one database.
        """
        ...

    @abstractmethod
    def register(self, name: str) -> CatalogEntry:
        ...

    @abstractmethod
    def increment_table_count(self, name: str) -> CatalogEntry:
        ...

    @abstractmethod
    def decrement_table_count(self, name: str) -> CatalogEntry:
        """Lower the count by one, never below zero."""
        ...

    @abstractmethod
    def reconcile_table_count(self, name: str, actual: int) -> CatalogEntry:
        ...

    @abstractmethod
    def soft_delete(self, name: str, at: int | None = None) -> CatalogEntry:
        ...

    @abstractmethod
    def hard_delete(self, name: str) -> None:
        ...

    @abstractmethod
    def create_database(self, name: str) -> CatalogEntry:
        """Register a database and create its directory."""
        ...

    @abstractmethod
    def drop_database(
        self, name: str, hard: bool = False, preserve_data: bool = False
    ) -> CatalogEntry | None:
        """Drop a database under the backup/mutate/commit protocol."""
        ...

    @abstractmethod
    def database_path(self, name: str) -> Path:
        ...
