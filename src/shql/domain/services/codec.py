"""Field codec for record lines.

A record is stored as its field values joined by ``:`` on a single line.
The codec owns the per-type rules, both for user input (``normalize``)
and for lines read back from disk (``decode``):

    int     ^-?[0-9]+$            (primary key: ^[1-9][0-9]*$)
    string  no ':' and no newline
    date    YYYY-MM-DD | YYYY-MM | YYYY | epoch seconds  ->  YYYY-MM-DD
    binary  archive filename only; the payload lives in the blob directory

Encoding is all-or-nothing: a record with one bad field is rejected whole.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Sequence

from shql.domain.entities import FIELD_DELIMITER, Column, Record, Schema
from shql.domain.errors import ValidationError
from shql.domain.value_objects import ColumnType

INT_PATTERN = re.compile(r"^-?[0-9]+$")
PK_PATTERN = re.compile(r"^[1-9][0-9]*$")
STORED_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
YEAR_MONTH_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}$")
YEAR_PATTERN = re.compile(r"^[0-9]{4}$")
EPOCH_PATTERN = re.compile(r"^[0-9]+$")
ARCHIVE_NAME_PATTERN = re.compile(r"^[0-9A-Za-z._-]+$")

DATE_FORMAT = "%Y-%m-%d"


def normalize_date(raw: str) -> str:
    """Normalize any accepted date form to YYYY-MM-DD.

    Raises:
        ValidationError: If the value is not a recognised, real date.
    """
    if STORED_DATE_PATTERN.match(raw):
        candidate = raw
    elif YEAR_MONTH_PATTERN.match(raw):
        candidate = f"{raw}-01"
    elif YEAR_PATTERN.match(raw):
        candidate = f"{raw}-01-01"
    elif EPOCH_PATTERN.match(raw):
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc).strftime(DATE_FORMAT)
        except (OverflowError, OSError, ValueError):
            raise ValidationError(
                "Epoch value is out of range for a date.", value=raw
            ) from None
    else:
        raise ValidationError(
            "Invalid date. Use format YYYY-MM-DD (e.g., 2024-12-25).", value=raw
        )

    try:
        datetime.strptime(candidate, DATE_FORMAT)
    except ValueError:
        raise ValidationError(
            "Invalid date. Use format YYYY-MM-DD (e.g., 2024-12-25).", value=raw
        ) from None
    return candidate


class FieldCodec:
    """Encodes and decodes record lines against a schema."""

    delimiter = FIELD_DELIMITER

    def normalize(self, column: Column, raw: str) -> str:
        """Validate one user-supplied value and return its stored form.

        Binary columns are not handled here beyond the archive-name check:
        the table engine archives the source file and passes the resulting
        name through this method.

        Raises:
            ValidationError: If the value breaks the column's type rules.
        """
        if raw == "":
            raise ValidationError("Value cannot be empty.", column=column.name)

        if column.primary_key:
            if not PK_PATTERN.match(raw):
                raise ValidationError(
                    "Primary key must be a positive integer.", column=column.name, value=raw
                )
            return raw

        if column.type is ColumnType.INT:
            if not INT_PATTERN.match(raw):
                raise ValidationError(
                    f"{column.name} must be integer.", column=column.name, value=raw
                )
            return raw

        if column.type is ColumnType.STRING:
            self._check_text(column, raw)
            return raw

        if column.type is ColumnType.DATE:
            return normalize_date(raw)

        if not ARCHIVE_NAME_PATTERN.match(raw):
            raise ValidationError(
                "Binary field must hold an archive filename.", column=column.name, value=raw
            )
        return raw

    def encode(self, fields: Sequence[str]) -> str:
        """Join stored field values into one record line.

        Raises:
            ValidationError: If any value contains the delimiter or a newline.
        """
        for position, value in enumerate(fields):
            if self.delimiter in value or "\n" in value or "\r" in value:
                raise ValidationError(
                    f"'{self.delimiter}' is not allowed in field values.",
                    position=position,
                )
        return self.delimiter.join(fields)

    def encode_record(self, record: Record) -> str:
        return self.encode(record.values)

    def decode(self, line: str, schema: Schema) -> Record:
        """Split and validate a stored record line.

        Raises:
            ValidationError: If the field count or any field is invalid.
        """
        fields = line.split(self.delimiter)
        if len(fields) != len(schema):
            raise ValidationError(
                f"Record has {len(fields)} fields, table '{schema.table}' "
                f"has {len(schema)} columns.",
                table=schema.table,
                line=line,
            )
        for column, value in zip(schema.columns, fields):
            if column.type is ColumnType.STRING:
                self._check_text(column, value)
            elif column.type is ColumnType.DATE:
                if not STORED_DATE_PATTERN.match(value):
                    raise ValidationError(
                        "Stored date is not normalized.", column=column.name, value=value
                    )
            else:
                self.normalize(column, value)
        return Record(tuple(fields))

    def _check_text(self, column: Column, value: str) -> None:
        if self.delimiter in value:
            raise ValidationError(
                f"'{self.delimiter}' is not allowed in string.", column=column.name
            )
        if "\n" in value or "\r" in value:
            raise ValidationError("Line breaks are not allowed in string.", column=column.name)
