"""REST API adapter for the record store.

This module exposes the record store's operation boundary over HTTP.
Typed errors come back as ``success: false`` with an error code and
context, with HTTP status 200, like any other outcome; only malformed
request bodies are rejected by FastAPI itself.

Endpoints:
    POST /execute - Execute one operation
    GET /databases - List active databases
    GET /health - Health check

Usage:
    from shql.adapters.inbound.rest_api import create_app
    from shql.application import create_record_store

    app = create_app(create_record_store())
    # Run with uvicorn: uvicorn app:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from shql import __version__
from shql.application import OperationRequest, OperationResult, RecordStore


class ExecuteRequest(BaseModel):
    """Request model for one operation."""

    operation: str = Field(..., description="Operation name, e.g. 'insert'")
    database: str | None = Field(None, description="Target database")
    table: str | None = Field(None, description="Target table")
    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Operation arguments"
    )


class ExecuteResponse(BaseModel):
    """Response model for an operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    outcome: str = Field("ok", description="ok, cancelled or error")
    message: str = Field("", description="Status or error message")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Result rows")
    columns: list[str] = Field(default_factory=list, description="Column names")
    affected_rows: int = Field(0, description="Number of affected records")
    error: str | None = Field(None, description="Error code")
    context: dict[str, Any] = Field(default_factory=dict, description="Error details")
    payload: dict[str, Any] = Field(default_factory=dict, description="Operation data")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    operations: list[str] = Field(default_factory=list, description="Supported operations")


def _result_to_response(result: OperationResult) -> ExecuteResponse:
    """Convert OperationResult to ExecuteResponse."""
    data = result.to_dict()
    data["rows"] = [row.as_dict() for row in result.rows]
    return ExecuteResponse(**data)


def create_app(store: RecordStore) -> FastAPI:
    """Create a FastAPI application for the record store.

    Args:
        store: The record store to serve.

    Returns:
        A configured FastAPI application.
    """
    app = FastAPI(
        title="ShQL API",
        description="REST API for the ShQL record store",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Handlers are plain functions: the store does blocking file I/O, so
    # FastAPI runs them in its thread pool.
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy", version=__version__, operations=store.operations
        )

    @app.get("/databases", response_model=ExecuteResponse, tags=["Catalog"])
    def list_databases() -> ExecuteResponse:
        """List active databases with their table counts."""
        return _result_to_response(store.execute(OperationRequest("list_databases")))

    @app.post("/execute", response_model=ExecuteResponse, tags=["Operations"])
    def execute(request: ExecuteRequest) -> ExecuteResponse:
        """Execute one operation.

        Args:
            request: Operation name, target and arguments.

        Returns:
            The operation result.
        """
        result = store.execute(
            OperationRequest(
                operation=request.operation,
                database=request.database,
                table=request.table,
                arguments=request.arguments,
            )
        )
        return _result_to_response(result)

    return app


def run_server(
    store: RecordStore,
    host: str = "0.0.0.0",
    port: int = 8000,
) -> None:
    """Run the REST API server.

    Args:
        store: The record store.
        host: Host to bind to.
        port: Port to bind to.
    """
    import uvicorn

    app = create_app(store)
    uvicorn.run(app, host=host, port=port)


def main() -> None:
    """Start the server with logging, tracing and metrics from the config."""
    from shql.application import create_record_store
    from shql.infrastructure import (
        get_config,
        get_logger,
        setup_logging,
        setup_metrics,
        setup_tracing,
    )

    config = get_config()
    observability = config.observability
    setup_logging(observability.log_level, observability.log_format)
    setup_tracing(observability.otel_service_name, observability.otel_endpoint)
    metrics = setup_metrics(config.server.metrics_port)

    store = create_record_store(config, metrics)
    get_logger(__name__).info(
        "server_starting",
        host=config.server.host,
        port=config.server.port,
        data_dir=str(config.storage.data_dir),
    )
    run_server(store, config.server.host, config.server.port)


if __name__ == "__main__":
    main()
