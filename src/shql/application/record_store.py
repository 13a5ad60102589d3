"""Record Store - single entry point for every operation.

Front ends (the REST adapter, a shell, tests) never call the services
directly. They build an ``OperationRequest`` and get back an
``OperationResult``; typed errors raised inside the services are caught
here and turned into structured results, so no failure aborts the session.

Usage:
    from shql.application import OperationRequest, create_record_store

    store = create_record_store()
    store.execute(OperationRequest("create_database", database="orders"))
    store.execute(OperationRequest(
        "create_table",
        database="orders",
        table="items",
        arguments={"columns": [
            {"name": "id", "type": "int", "primary_key": True},
            {"name": "name", "type": "string"},
        ]},
    ))
    store.execute(OperationRequest(
        "insert", database="orders", table="items", arguments={"values": ["1", "pen"]}
    ))
    result = store.execute(OperationRequest("select", database="orders", table="items"))

Destructive operations (drop_database, drop_table, delete, rollback) only
run with ``arguments["confirm"]`` set; otherwise the outcome is
``cancelled`` and nothing is touched.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from shql.domain.entities import CatalogEntry, Row, Schema, SnapshotInfo
from shql.domain.errors import InvariantViolationError, ShqlError, ValidationError
from shql.domain.services import SchemaStore
from shql.infrastructure.logging import get_logger, operation_context
from shql.infrastructure.metrics import MetricsRegistry
from shql.infrastructure.tracing import trace_span
from shql.ports.inbound import CatalogPort, RecoveryEngine, TableOperations

logger = get_logger(__name__)

OUTCOME_OK = "ok"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_ERROR = "error"

DESTRUCTIVE_OPERATIONS = frozenset({"drop_database", "drop_table", "delete", "rollback"})

CATALOG_COLUMNS = ["name", "table_count", "created_at", "modified_at"]
SNAPSHOT_COLUMNS = ["name", "scope", "table", "created", "description"]


@dataclass
class OperationRequest:
    """One operation against the store.

    Attributes:
        operation: Operation name, e.g. ``insert`` or ``rollback``.
        database: Target database, where the operation needs one.
        table: Target table, where the operation needs one.
        arguments: Operation-specific arguments.
    """

    operation: str
    database: str | None = None
    table: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationResult:
    """Structured outcome of an operation."""

    success: bool
    outcome: str = OUTCOME_OK
    message: str = ""
    rows: list[Row] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    affected_rows: int = 0
    error: str | None = None  # error code when outcome is "error"
    context: dict[str, Any] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def cancelled(cls, message: str) -> OperationResult:
        return cls(success=False, outcome=OUTCOME_CANCELLED, message=message)

    @classmethod
    def failed(cls, error: ShqlError) -> OperationResult:
        return cls(
            success=False,
            outcome=OUTCOME_ERROR,
            message=error.message,
            error=error.code,
            context=dict(error.context),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "outcome": self.outcome,
            "message": self.message,
            "columns": list(self.columns),
            "rows": [list(row.values) for row in self.rows],
            "affected_rows": self.affected_rows,
            "error": self.error,
            "context": {key: _plain(value) for key, value in self.context.items()},
            "payload": self.payload,
        }


def _plain(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)


class RecordStore:
    """Dispatches operation requests to the catalog, table engine and
    recovery engine.

    Each call is wrapped in a trace span, binds the operation, database and
    table to the log context, and records count and latency metrics.
    """

    def __init__(
        self,
        catalog: CatalogPort,
        schema_store: SchemaStore,
        tables: TableOperations,
        recovery: RecoveryEngine,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._catalog = catalog
        self._schemas = schema_store
        self._tables = tables
        self._recovery = recovery
        self._metrics = metrics
        self._handlers: dict[str, Callable[[OperationRequest], OperationResult]] = {
            "create_database": self._create_database,
            "list_databases": self._list_databases,
            "drop_database": self._drop_database,
            "create_table": self._create_table,
            "list_tables": self._list_tables,
            "drop_table": self._drop_table,
            "insert": self._insert,
            "select": self._select,
            "update": self._update,
            "delete": self._delete,
            "create_snapshot": self._create_snapshot,
            "list_snapshots": self._list_snapshots,
            "rollback": self._rollback,
        }

    @property
    def operations(self) -> list[str]:
        return sorted(self._handlers)

    def execute(self, request: OperationRequest) -> OperationResult:
        """Run one operation and map any typed error to a result.

        Args:
            request: The operation to run.

        Returns:
            The operation result. Errors from the ``ShqlError`` taxonomy never
            escape this method.
        """
        start = time.perf_counter()
        with operation_context(
            operation=request.operation, database=request.database, table=request.table
        ), trace_span(
            f"shql.{request.operation}",
            {"shql.database": request.database, "shql.table": request.table},
        ) as span:
            try:
                handler = self._handlers.get(request.operation)
                if handler is None:
                    raise ValidationError(
                        f"Unknown operation '{request.operation}'.",
                        operation=request.operation,
                    )
                if request.operation in DESTRUCTIVE_OPERATIONS and not request.arguments.get(
                    "confirm"
                ):
                    result = OperationResult.cancelled("Operation cancelled.")
                else:
                    result = handler(request)
            except InvariantViolationError as e:
                logger.error("operation_inconsistent", error=e.message, context=e.context)
                result = OperationResult.failed(e)
            except ShqlError as e:
                logger.warning("operation_failed", code=e.code, error=e.message)
                result = OperationResult.failed(e)

            span.set_attribute("shql.outcome", result.outcome)
            if result.error:
                span.set_attribute("shql.error", result.error)

        self._observe(request.operation, result, time.perf_counter() - start)
        return result

    def _observe(self, operation: str, result: OperationResult, elapsed: float) -> None:
        if self._metrics is None:
            return
        self._metrics.operations_total.labels(operation=operation, outcome=result.outcome).inc()
        self._metrics.operation_latency_seconds.labels(operation=operation).observe(elapsed)
        if result.error:
            self._metrics.errors_total.labels(code=result.error).inc()

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def _create_database(self, request: OperationRequest) -> OperationResult:
        entry = self._catalog.create_database(_database(request))
        self._update_gauge()
        return OperationResult(
            success=True,
            message=f"Database '{entry.name}' created.",
            payload=_entry_dict(entry),
        )

    def _list_databases(self, request: OperationRequest) -> OperationResult:
        entries = self._catalog.list()
        self._update_gauge(len(entries))
        rows = [
            Row(columns=list(CATALOG_COLUMNS), values=[str(v) for v in _entry_dict(e).values()])
            for e in entries
        ]
        message = f"{len(rows)} database(s)." if rows else "No databases found."
        return OperationResult(
            success=True, message=message, rows=rows, columns=list(CATALOG_COLUMNS)
        )

    def _drop_database(self, request: OperationRequest) -> OperationResult:
        name = _database(request)
        hard = bool(request.arguments.get("hard", False))
        tombstone = self._catalog.drop_database(
            name,
            hard=hard,
            preserve_data=bool(request.arguments.get("preserve_data", False)),
        )
        self._update_gauge()
        payload = {"hard": hard, "tombstone": tombstone.name if tombstone else None}
        return OperationResult(
            success=True, message=f"Database '{name}' dropped.", payload=payload
        )

    def _update_gauge(self, count: int | None = None) -> None:
        if self._metrics is None:
            return
        self._metrics.databases_active.set(
            len(self._catalog.list()) if count is None else count
        )

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _create_table(self, request: OperationRequest) -> OperationResult:
        columns = [_column_spec(spec) for spec in _sequence(request, "columns")]
        fallback = request.arguments.get("primary_key_fallback")
        schema = self._schemas.create(
            _database(request),
            _table(request),
            columns,
            primary_key_fallback=None if fallback is None else _position(fallback),
        )
        if schema is None:
            return OperationResult.cancelled("Table creation cancelled: no primary key.")
        return OperationResult(
            success=True,
            message=f"Table '{schema.table}' created.",
            columns=schema.column_names,
            payload={"schema": _schema_dict(schema)},
        )

    def _list_tables(self, request: OperationRequest) -> OperationResult:
        names = self._tables.list_tables(_database(request))
        rows = [Row(columns=["table"], values=[name]) for name in names]
        message = f"{len(rows)} table(s)." if rows else "No tables found."
        return OperationResult(success=True, message=message, rows=rows, columns=["table"])

    def _drop_table(self, request: OperationRequest) -> OperationResult:
        database, table = _database(request), _table(request)
        payload: dict[str, Any] = {}
        if request.arguments.get("snapshot_first"):
            snapshot = self._recovery.create_snapshot(
                "table",
                database,
                table,
                str(request.arguments.get("description") or f"before dropping {table}"),
            )
            payload["snapshot"] = snapshot.to_dict()
        self._tables.drop_table(database, table)
        return OperationResult(
            success=True, message=f"Table '{table}' dropped.", payload=payload
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _insert(self, request: OperationRequest) -> OperationResult:
        values = [str(value) for value in _sequence(request, "values")]
        record = self._tables.insert(_database(request), _table(request), values)
        return OperationResult(
            success=True,
            message="Record inserted.",
            affected_rows=1,
            payload={"record": list(record.values)},
        )

    def _select(self, request: OperationRequest) -> OperationResult:
        projection = request.arguments.get("projection")
        where = request.arguments.get("where")
        if where is not None:
            where = _where(where)
        result = self._tables.select(
            _database(request),
            _table(request),
            projection=_projection(projection) if projection is not None else None,
            where=where,
        )
        rows = list(result.rows)
        message = f"{len(rows)} row(s)." if rows else "No records found."
        return OperationResult(
            success=True, message=message, rows=rows, columns=result.columns
        )

    def _update(self, request: OperationRequest) -> OperationResult:
        record = self._tables.update(
            _database(request),
            _table(request),
            str(_argument(request, "pk")),
            _argument(request, "column"),
            str(_argument(request, "value")),
        )
        return OperationResult(
            success=True,
            message="Record updated.",
            affected_rows=1,
            payload={"record": list(record.values)},
        )

    def _delete(self, request: OperationRequest) -> OperationResult:
        record = self._tables.delete(
            _database(request), _table(request), str(_argument(request, "pk"))
        )
        return OperationResult(
            success=True,
            message="Record deleted.",
            affected_rows=1,
            payload={"record": list(record.values)},
        )

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def _create_snapshot(self, request: OperationRequest) -> OperationResult:
        scope = request.arguments.get("scope", "table" if request.table else "db")
        snapshot = self._recovery.create_snapshot(
            scope,
            _database(request),
            request.table,
            str(request.arguments.get("description") or ""),
        )
        return OperationResult(
            success=True,
            message=f"Snapshot '{snapshot.identity}' created.",
            payload={"snapshot": snapshot.to_dict()},
        )

    def _list_snapshots(self, request: OperationRequest) -> OperationResult:
        snapshots = self._recovery.list_snapshots(_database(request))
        rows = [_snapshot_row(snapshot) for snapshot in snapshots]
        message = f"{len(rows)} snapshot(s)." if rows else "No snapshots found."
        return OperationResult(
            success=True, message=message, rows=rows, columns=list(SNAPSHOT_COLUMNS)
        )

    def _rollback(self, request: OperationRequest) -> OperationResult:
        outcome = self._recovery.rollback(
            _argument(request, "scope"), str(_argument(request, "snapshot"))
        )
        payload: dict[str, Any] = {"snapshot": outcome.snapshot.to_dict()}
        payload["backup"] = outcome.backup.to_dict() if outcome.backup else None
        return OperationResult(
            success=True,
            message=f"Rolled back to '{outcome.snapshot.identity}'.",
            payload=payload,
        )


# ----------------------------------------------------------------------
# Argument helpers
# ----------------------------------------------------------------------


def _database(request: OperationRequest) -> str:
    if not request.database:
        raise ValidationError(
            "This operation needs a database.", operation=request.operation
        )
    return request.database


def _table(request: OperationRequest) -> str:
    if not request.table:
        raise ValidationError("This operation needs a table.", operation=request.operation)
    return request.table


def _argument(request: OperationRequest, key: str) -> Any:
    if key not in request.arguments or request.arguments[key] is None:
        raise ValidationError(
            f"Missing argument '{key}'.", operation=request.operation, argument=key
        )
    return request.arguments[key]


def _sequence(request: OperationRequest, key: str) -> list[Any]:
    value = _argument(request, key)
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"Argument '{key}' must be a list.", operation=request.operation, argument=key
        )
    return list(value)


def _position(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Column position must be an integer.", position=str(value))
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Column position must be an integer.", position=str(value)
        ) from None


def _column_spec(spec: Any) -> tuple[str, str, bool]:
    """Accept ``{"name", "type", "primary_key"}`` or ``"name:type[:PK]"``."""
    if isinstance(spec, str):
        parts = spec.split(":")
        if len(parts) < 2:
            raise ValidationError("Column must be given as name:type[:PK].", column=spec)
        return parts[0], parts[1], len(parts) > 2 and parts[2].upper() == "PK"
    if isinstance(spec, dict):
        return (
            str(spec.get("name", "")),
            str(spec.get("type", "")),
            bool(spec.get("primary_key", False)),
        )
    raise ValidationError("Invalid column definition.", column=str(spec))


def _where(where: Any) -> tuple[int, str]:
    try:
        if isinstance(where, dict):
            return int(where["position"]), str(where.get("value", ""))
        position, value = where
        return int(position), str(value)
    except (KeyError, TypeError, ValueError):
        raise ValidationError(
            "Filter must be a position and a value.", where=str(where)
        ) from None


def _projection(projection: Any) -> list[int]:
    try:
        return [int(position) for position in projection]
    except (TypeError, ValueError):
        raise ValidationError(
            "Projection must be a list of column positions.", projection=str(projection)
        ) from None


def _entry_dict(entry: CatalogEntry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "table_count": entry.table_count,
        "created_at": entry.created_at,
        "modified_at": entry.modified_at,
    }


def _schema_dict(schema: Schema) -> list[dict[str, Any]]:
    return [
        {"name": c.name, "type": c.type.value, "primary_key": c.primary_key}
        for c in schema.columns
    ]


def _snapshot_row(snapshot: SnapshotInfo) -> Row:
    return Row(
        columns=list(SNAPSHOT_COLUMNS),
        values=[
            snapshot.identity,
            snapshot.scope.value,
            snapshot.table or "",
            snapshot.created,
            snapshot.description,
        ],
    )
