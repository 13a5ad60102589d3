"""Inbound adapters for the record store.

Inbound adapters handle incoming requests and convert them to
operation requests for the application layer.

Exports:
    REST API:
        - create_app: Create a FastAPI application
        - run_server: Run the REST API server
        - ExecuteRequest, ExecuteResponse: Wire models
"""

from shql.adapters.inbound.rest_api import (
    ExecuteRequest,
    ExecuteResponse,
    HealthResponse,
    create_app,
    run_server,
)

__all__ = [
    "create_app",
    "run_server",
    "ExecuteRequest",
    "ExecuteResponse",
    "HealthResponse",
]
