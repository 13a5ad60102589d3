"""Record and projected row entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shql.domain.entities.schema import FIELD_DELIMITER


@dataclass(frozen=True)
class Record:
    """One stored row: field values in schema column order.

    Values are kept in their stored text form, which makes
    encode/decode an exact round trip.
    """

    values: tuple[str, ...]

    def __getitem__(self, index: int) -> str:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)

    def replace(self, index: int, value: str) -> Record:
        """Return a copy with one field replaced."""
        values = list(self.values)
        values[index] = value
        return Record(tuple(values))


@dataclass
class Row:
    """A projected row returned by Select.

    Rows can be accessed by column name or position; ``str(row)`` gives the
    projected values joined by the field delimiter.
    """

    columns: list[str]
    values: list[str]

    def __getitem__(self, key: str | int) -> Any:
        if isinstance(key, int):
            return self.values[key]
        try:
            idx = self.columns.index(key)
            return self.values[idx]
        except ValueError as e:
            raise KeyError(f"Column '{key}' not found") from e

    def as_dict(self) -> dict[str, str]:
        return dict(zip(self.columns, self.values))

    def __str__(self) -> str:
        return FIELD_DELIMITER.join(self.values)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{c}={v!r}" for c, v in zip(self.columns, self.values))
        return f"Row({pairs})"
