"""Adapters layer - concrete implementations of port interfaces.

Adapters provide the actual implementations:
- Inbound adapters: Handle incoming requests (REST)
- Outbound adapters: Implement external dependencies (filesystem, archives)
"""

from shql.adapters.outbound import LocalFileStore, TarBlobArchiver

__all__ = [
    # Outbound adapters
    "LocalFileStore",
    "TarBlobArchiver",
]
