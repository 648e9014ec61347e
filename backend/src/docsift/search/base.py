"""Protocols for the search-engine collaborator.

An engine both stores chunk records (:class:`IndexWriterProtocol`) and
executes compiled queries against them (:class:`SearchEngineProtocol`).
Adapters translate :class:`CompiledQuery` into the engine's native syntax.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from docsift.core.models import ChunkRecord, CompiledQuery, EngineResponse


@runtime_checkable
class SearchEngineProtocol(Protocol):
    """Protocol that every search engine must satisfy.

    Implementations return one hit per matching record, ordered by
    descending score, together with the total number of matching records.
    """

    def search(self, query: CompiledQuery, size: int = 20) -> EngineResponse:
        """Execute *query* and return at most *size* hits.

        Parameters
        ----------
        query:
            The compiled query.  Filter predicates must be applied as hard
            filters; the clause tree decides eligibility and score.
        size:
            Maximum number of hits to return.
        """
        ...


@runtime_checkable
class IndexWriterProtocol(Protocol):
    """Protocol for writing chunk records to the index."""

    def add_records(self, records: list[ChunkRecord]) -> None:
        """Upsert *records*, keyed by ``record_id``."""
        ...

    def delete_file(self, file_key: str) -> int:
        """Remove every record of *file_key* and return how many were removed."""
        ...
