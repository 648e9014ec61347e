"""Public type re-exports for the docsift API layer.

Consumers of the API can import commonly used types from this module
instead of reaching into ``docsift.core.models`` directly.
"""

from __future__ import annotations

from docsift.core.models import (
    AggregatedResult,
    CompiledQuery,
    FilterSet,
    IndexStats,
    ParsedQuery,
    SearchResponse,
)

__all__ = [
    "AggregatedResult",
    "CompiledQuery",
    "FilterSet",
    "IndexStats",
    "ParsedQuery",
    "SearchResponse",
]
