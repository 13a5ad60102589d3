"""Unit tests for the schema store."""

from __future__ import annotations

from pathlib import Path

import pytest

from shql.adapters.outbound import LocalFileStore
from shql.domain.errors import (
    DuplicateError,
    IOFailureError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from shql.domain.services import Catalog, SchemaStore
from shql.domain.value_objects import ColumnType
from shql.infrastructure.config import Config


class NoDataFileStore(LocalFileStore):
    """File store that cannot create empty files."""

    def create_empty(self, path: Path) -> None:
        raise IOFailureError(f"Failed to create {path}", path=str(path))


@pytest.mark.unit
class TestSchemaStoreCreate:
    """Tests for table creation."""

    def test_create(
        self, schema_store: SchemaStore, catalog: Catalog, orders: str, test_config: Config
    ) -> None:
        schema = schema_store.create(
            orders, "items", [("id", "int", True), ("name", "string", False)]
        )

        assert schema is not None
        assert schema.column_names == ["id", "name"]
        db_dir = test_config.storage.data_dir / "orders"
        assert (db_dir / "items.meta").read_text() == "id:int:PK\nname:string\n"
        assert (db_dir / "items.data").read_text() == ""
        assert catalog.get(orders).table_count == 1

    def test_load(self, schema_store: SchemaStore, items: str, orders: str) -> None:
        schema = schema_store.load(orders, items)

        assert schema.pk_column.name == "id"
        assert schema.columns[1].type is ColumnType.STRING

    def test_load_missing(self, schema_store: SchemaStore, orders: str) -> None:
        with pytest.raises(NotFoundError):
            schema_store.load(orders, "missing")

    def test_unknown_database(self, schema_store: SchemaStore) -> None:
        with pytest.raises(NotFoundError):
            schema_store.create("nothing", "items", [("id", "int", True), ("nm", "string", False)])

    def test_duplicate_table(self, schema_store: SchemaStore, items: str, orders: str) -> None:
        with pytest.raises(DuplicateError):
            schema_store.create(orders, items, [("id", "int", True), ("nm", "string", False)])

    @pytest.mark.parametrize("table", ["", "ab", "1items", "select", "../x"])
    def test_invalid_table_name(
        self, schema_store: SchemaStore, orders: str, table: str
    ) -> None:
        with pytest.raises(ValidationError):
            schema_store.create(orders, table, [("id", "int", True), ("nm", "string", False)])

    @pytest.mark.parametrize(
        ("columns", "message"),
        [
            ([("id", "int", True)], "between 2 and 9"),
            ([(f"col_{c}", "int", c == "a") for c in "abcdefghij"], "between 2 and 9"),
            ([("id", "int", True), ("x", "string", False)], "at least 2"),
            ([("id", "int", True), ("from", "string", False)], "reserved"),
            ([("id", "int", True), ("ID", "string", False)], "already used"),
            ([("id", "int", True), ("name", "text", False)], "Invalid data type"),
            ([("id", "int", True), ("code", "int", True)], "Only one primary key"),
            ([("id", "string", True), ("name", "string", False)], "must be of type int"),
        ],
    )
    def test_invalid_columns(
        self,
        schema_store: SchemaStore,
        orders: str,
        test_config: Config,
        columns: list[tuple[str, str, bool]],
        message: str,
    ) -> None:
        with pytest.raises(ValidationError, match=message):
            schema_store.create(orders, "items", columns)

        assert not (test_config.storage.data_dir / "orders" / "items.meta").exists()

    def test_primary_key_fallback(self, schema_store: SchemaStore, orders: str) -> None:
        schema = schema_store.create(
            orders,
            "items",
            [("name", "string", False), ("code", "int", False)],
            primary_key_fallback=1,
        )

        assert schema is not None
        assert schema.pk_column.name == "code"

    def test_fallback_must_be_int(self, schema_store: SchemaStore, orders: str) -> None:
        with pytest.raises(ValidationError, match="must be of type int"):
            schema_store.create(
                orders,
                "items",
                [("name", "string", False), ("code", "int", False)],
                primary_key_fallback=0,
            )

    def test_cancelled_fallback_writes_nothing(
        self, schema_store: SchemaStore, catalog: Catalog, orders: str, test_config: Config
    ) -> None:
        result = schema_store.create(
            orders, "items", [("name", "string", False), ("code", "int", False)]
        )

        assert result is None
        assert list((test_config.storage.data_dir / "orders").iterdir()) == []
        assert catalog.get(orders).table_count == 0

    def test_data_file_failure_removes_schema(
        self, catalog: Catalog, orders: str, test_config: Config
    ) -> None:
        store = SchemaStore(NoDataFileStore(fsync=False), catalog)

        with pytest.raises(IOFailureError):
            store.create(orders, "items", [("id", "int", True), ("name", "string", False)])

        assert list((test_config.storage.data_dir / "orders").iterdir()) == []
        assert catalog.get(orders).table_count == 0


@pytest.mark.unit
class TestSchemaStoreQueries:
    """Tests for listing and existence checks."""

    def test_list_tables_sorted(self, schema_store: SchemaStore, orders: str) -> None:
        for table in ("zebra", "apple", "mango"):
            schema_store.create(orders, table, [("id", "int", True), ("nm", "string", False)])

        assert schema_store.list_tables(orders) == ["apple", "mango", "zebra"]

    def test_exists(self, schema_store: SchemaStore, items: str, orders: str) -> None:
        assert schema_store.exists(orders, items)
        assert not schema_store.exists(orders, "other")

    def test_missing_directory_is_inconsistent(
        self, schema_store: SchemaStore, orders: str, test_config: Config
    ) -> None:
        (test_config.storage.data_dir / "orders").rmdir()

        with pytest.raises(InvariantViolationError):
            schema_store.list_tables(orders)
