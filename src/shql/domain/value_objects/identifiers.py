"""Identifier rules and path containment.

Every entry point that accepts a database, table or column name runs it
through ``validate_identifier``; every path built from such a name goes
through ``resolve_within_root`` before it is touched.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal, NewType

from shql.domain.errors import PathEscapeError, ValidationError


DatabaseName = NewType("DatabaseName", str)
"""Name of a database: letters only, unique among active catalog entries."""

TableName = NewType("TableName", str)
"""Name of a table, unique (case-sensitive) within its database."""

RESERVED_WORDS: frozenset[str] = frozenset(
    {"select", "insert", "delete", "update", "from", "where", "table", "database"}
)
"""Keywords no table or column may be named after (case-insensitive)."""

RESERVED_DATABASE_NAMES: frozenset[str] = frozenset({"meta", "snapshots"})
"""Directory names used by the store itself inside the data directory."""

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z][A-Za-z_]*$")
DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z]+$")

IdentifierKind = Literal["table", "column"]

_MIN_LENGTH: dict[str, int] = {"table": 3, "column": 2}


def validate_identifier(name: str, kind: IdentifierKind) -> str:
    """Validate a table or column name.

    Checks run in a fixed order so the first failure is reported:
    empty, too short, pattern, reserved word.

    Args:
        name: The candidate name.
        kind: ``"table"`` (min length 3) or ``"column"`` (min length 2).

    Returns:
        The name unchanged.

    Raises:
        ValidationError: If any rule fails.
    """
    label = kind.capitalize()
    if not name:
        raise ValidationError(f"{label} name cannot be empty.", kind=kind)
    if len(name) < _MIN_LENGTH[kind]:
        raise ValidationError(
            f"{label} name must be at least {_MIN_LENGTH[kind]} characters long.",
            kind=kind,
            name=name,
            limit=_MIN_LENGTH[kind],
        )
    if not IDENTIFIER_PATTERN.match(name):
        raise ValidationError(
            f"Invalid {kind} name. It must start with a letter and contain only "
            "letters and underscores.",
            kind=kind,
            name=name,
        )
    if name.lower() in RESERVED_WORDS:
        raise ValidationError(f"{label} name is a reserved word.", kind=kind, name=name)
    return name


def validate_database_name(name: str, min_length: int = 3, max_length: int = 55) -> DatabaseName:
    """Validate a database name (English letters only, bounded length)."""
    if not name:
        raise ValidationError("Database name cannot be empty.", kind="database")
    if len(name) < min_length:
        raise ValidationError(
            f"Database name cannot be less than {min_length} letters.",
            kind="database",
            name=name,
            limit=min_length,
        )
    if len(name) > max_length:
        raise ValidationError(
            f"Database name cannot be more than {max_length} letters.",
            kind="database",
            name=name,
            limit=max_length,
        )
    if not DATABASE_NAME_PATTERN.match(name):
        raise ValidationError(
            "Database name may only contain English letters.", kind="database", name=name
        )
    if name.lower() in RESERVED_DATABASE_NAMES or name.lower() in RESERVED_WORDS:
        raise ValidationError("Database name is reserved.", kind="database", name=name)
    return DatabaseName(name)


def resolve_within_root(root: Path, *parts: str) -> Path:
    """Join ``parts`` onto ``root`` and verify the result stays inside it.

    The root must exist; the target need not. Symlinks are resolved on both
    sides so a link pointing outside the root is caught as well.

    Raises:
        PathEscapeError: If the resolved target is not strictly below root.
    """
    real_root = root.resolve()
    target = real_root.joinpath(*parts).resolve()
    if target == real_root or real_root not in target.parents:
        raise PathEscapeError(
            "Invalid name: resolved path escapes its database directory.",
            root=str(real_root),
            path=str(target),
        )
    return target
