"""Catalog entry entity.

The catalog file holds one comma-separated line per database::

    orders,2,1718000000,1718000450
    1718000900!archive,0,1717000000,1717000300

A soft-deleted database keeps its line under a tombstone key
``<epoch>!<name>``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from shql.domain.errors import InvariantViolationError

TOMBSTONE_SEPARATOR = "!"


@dataclass(frozen=True)
class CatalogEntry:
    """Aggregate metadata for one database."""

    name: str
    table_count: int = 0
    created_at: int = 0
    modified_at: int = 0

    @property
    def is_tombstone(self) -> bool:
        return TOMBSTONE_SEPARATOR in self.name

    @property
    def database(self) -> str:
        """Name of the database, with any tombstone prefix stripped."""
        return self.name.split(TOMBSTONE_SEPARATOR, 1)[-1]

    def tombstoned(self, at: int) -> CatalogEntry:
        return replace(self, name=f"{at}{TOMBSTONE_SEPARATOR}{self.database}", modified_at=at)

    def with_table_count(self, count: int, at: int) -> CatalogEntry:
        return replace(self, table_count=max(0, count), modified_at=at)

    def to_line(self) -> str:
        return f"{self.name},{self.table_count},{self.created_at},{self.modified_at}"

    @classmethod
    def from_line(cls, line: str) -> CatalogEntry:
        """Parse a catalog line; missing numeric fields read as zero."""
        parts = line.split(",")
        if not parts[0]:
            raise InvariantViolationError(f"Malformed catalog line: {line!r}", line=line)
        parts += [""] * (4 - len(parts))
        try:
            numbers = [int(part) if part else 0 for part in parts[1:4]]
        except ValueError:
            raise InvariantViolationError(
                f"Malformed catalog line: {line!r}", line=line
            ) from None
        return cls(parts[0], *numbers)
