"""Unit tests for the database catalog."""

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
from shql.domain.services import Catalog
from shql.infrastructure.config import Config


class FailingRemoveStore(LocalFileStore):
    """File store whose directory removal always fails."""

    def remove_tree(self, path: Path) -> None:
        raise IOFailureError(f"Failed to remove {path}", path=str(path))


class FailingRestoreStore(FailingRemoveStore):
    """File store that also cannot restore the catalog backup."""

    def rename(self, source: Path, destination: Path) -> None:
        raise IOFailureError(f"Failed to rename {source}", path=str(source))


class Clock:
    def __init__(self, start: int = 1000) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return self.now


@pytest.mark.unit
class TestCatalogRegistry:
    """Tests for rows, counts and tombstones."""

    def test_register_and_list(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.register("people")

        assert [e.name for e in catalog.list()] == ["orders", "people"]
        assert catalog.catalog_file.read_text().startswith("orders,0,")

    def test_register_duplicate(self, catalog: Catalog) -> None:
        catalog.register("orders")
        with pytest.raises(DuplicateError):
            catalog.register("Orders")

    def test_counts(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.increment_table_count("orders")
        catalog.increment_table_count("orders")
        catalog.decrement_table_count("orders")

        assert catalog.get("orders").table_count == 1

    def test_decrement_floors_at_zero(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.decrement_table_count("orders")

        assert catalog.get("orders").table_count == 0

    def test_unknown_database(self, catalog: Catalog) -> None:
        with pytest.raises(NotFoundError):
            catalog.increment_table_count("nothing")

    def test_soft_delete(self, catalog: Catalog) -> None:
        catalog.register("orders")
        tombstone = catalog.soft_delete("orders", at=555)

        assert tombstone.name == "555!orders"
        assert catalog.list() == []
        assert [e.name for e in catalog.tombstones()] == ["555!orders"]
        assert not catalog.exists("orders")

    def test_name_reusable_after_soft_delete(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.soft_delete("orders", at=1)
        catalog.register("orders")

        assert [e.name for e in catalog.list()] == ["orders"]

    def test_hard_delete(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.hard_delete("orders")

        assert catalog.catalog_file.read_text() == ""
        with pytest.raises(NotFoundError):
            catalog.hard_delete("orders")

    def test_exists_case_insensitive(self, catalog: Catalog) -> None:
        catalog.register("orders")

        assert catalog.exists("orders")
        assert not catalog.exists("ORDERS")
        assert catalog.exists("ORDERS", case_insensitive=True)

    def test_ambiguous_case_variants(self, catalog: Catalog) -> None:
        """Rows written by hand can clash by case; lookup refuses to pick one."""
        catalog.catalog_file.write_text("orders,0,1,1\nORDERS,0,1,1\n")

        with pytest.raises(DuplicateError, match="ambiguous"):
            catalog.exists("Orders", case_insensitive=True)

    def test_file_reread_every_call(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.catalog_file.write_text("people,3,1,1\n")

        assert [e.name for e in catalog.list()] == ["people"]

    def test_reconcile(self, catalog: Catalog) -> None:
        catalog.register("orders")
        catalog.reconcile_table_count("orders", 4)

        assert catalog.get("orders").table_count == 4


@pytest.mark.unit
class TestDatabaseLifecycle:
    """Tests for create and drop under the backup/mutate/commit protocol."""

    def test_create_database(self, catalog: Catalog, test_config: Config) -> None:
        entry = catalog.create_database("orders")

        assert entry.table_count == 0
        assert (test_config.storage.data_dir / "orders").is_dir()
        assert not (test_config.storage.meta_dir / "DBS.bak").exists()

    def test_create_invalid_name(self, catalog: Catalog) -> None:
        with pytest.raises(ValidationError):
            catalog.create_database("my_db")
        with pytest.raises(ValidationError):
            catalog.create_database("meta")

    def test_create_duplicate(self, catalog: Catalog) -> None:
        catalog.create_database("orders")
        with pytest.raises(DuplicateError):
            catalog.create_database("orders")

    def test_create_over_existing_directory(
        self, catalog: Catalog, test_config: Config
    ) -> None:
        (test_config.storage.data_dir / "orders").mkdir()
        with pytest.raises(DuplicateError):
            catalog.create_database("orders")
        assert catalog.list() == []

    def test_soft_drop_removes_directory(self, catalog: Catalog, test_config: Config) -> None:
        catalog.create_database("orders")
        tombstone = catalog.drop_database("orders")

        assert tombstone is not None and tombstone.is_tombstone
        assert not (test_config.storage.data_dir / "orders").exists()
        assert catalog.list() == []

    def test_soft_drop_preserving_data(self, test_config: Config) -> None:
        catalog = Catalog(
            LocalFileStore(fsync=False),
            test_config.storage.catalog_file,
            test_config.storage.data_dir,
            clock=Clock(),
        )
        catalog.create_database("orders")
        (test_config.storage.data_dir / "orders" / "items.meta").write_text("id:int:PK\n")

        tombstone = catalog.drop_database("orders", preserve_data=True)

        assert tombstone is not None
        preserved = test_config.storage.data_dir / tombstone.name
        assert (preserved / "items.meta").is_file()
        assert not (test_config.storage.data_dir / "orders").exists()

    def test_hard_drop(self, catalog: Catalog, test_config: Config) -> None:
        catalog.create_database("orders")

        assert catalog.drop_database("orders", hard=True) is None
        assert catalog.catalog_file.read_text() == ""
        assert not (test_config.storage.data_dir / "orders").exists()

    def test_hard_drop_cannot_preserve(self, catalog: Catalog) -> None:
        catalog.create_database("orders")
        with pytest.raises(ValidationError):
            catalog.drop_database("orders", hard=True, preserve_data=True)

    def test_drop_missing(self, catalog: Catalog) -> None:
        with pytest.raises(NotFoundError):
            catalog.drop_database("orders")

    def test_failed_drop_restores_catalog(self, test_config: Config) -> None:
        """Row and directory never disagree after a failed removal."""
        catalog = Catalog(
            FailingRemoveStore(fsync=False),
            test_config.storage.catalog_file,
            test_config.storage.data_dir,
        )
        catalog.create_database("orders")
        before = catalog.catalog_file.read_text()

        with pytest.raises(IOFailureError):
            catalog.drop_database("orders")

        assert catalog.catalog_file.read_text() == before
        assert catalog.exists("orders")
        assert (test_config.storage.data_dir / "orders").is_dir()

    def test_failed_restore_is_invariant_violation(self, test_config: Config) -> None:
        catalog = Catalog(
            LocalFileStore(fsync=False),
            test_config.storage.catalog_file,
            test_config.storage.data_dir,
        )
        catalog.create_database("orders")
        broken = Catalog(
            FailingRestoreStore(fsync=False),
            test_config.storage.catalog_file,
            test_config.storage.data_dir,
        )

        with pytest.raises(InvariantViolationError) as exc_info:
            broken.drop_database("orders")

        assert exc_info.value.context["backup"].endswith("DBS.bak")
        assert exc_info.value.context["path"].endswith("orders")

    def test_database_path_contained(self, catalog: Catalog, test_config: Config) -> None:
        path = catalog.database_path("orders")
        assert path == (test_config.storage.data_dir / "orders").resolve()
