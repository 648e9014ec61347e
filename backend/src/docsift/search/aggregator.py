"""Merging of per-chunk hits back into one result per logical file.

A large file is indexed as several chunk records, so one file can come back
from the engine as several hits.  :func:`aggregate_hits` groups hits by
``file_key``; each group reports the best score of its chunks and the
content and highlights of the best-scoring chunk (the first one seen wins
ties).
"""

from __future__ import annotations

import logging

from docsift.core.models import (
    AggregatedResult,
    ChunkScore,
    EngineResponse,
    SearchHit,
    SearchResponse,
)

logger = logging.getLogger(__name__)


def _chunk_score(hit: SearchHit) -> ChunkScore | None:
    """Return the chunk position of *hit*, or ``None`` if it is not a usable chunk."""
    if not hit.is_chunked:
        return None
    if hit.chunk_index is None or hit.chunk_index < 0:
        logger.debug("Hit for %s is flagged chunked without a valid index", hit.file_key)
        return None
    return ChunkScore(chunk_index=hit.chunk_index, score=hit.score)


def _new_result(hit: SearchHit, chunk: ChunkScore | None) -> AggregatedResult:
    return AggregatedResult(
        file_key=hit.file_key,
        score=hit.score,
        filename=hit.filename,
        path=hit.path,
        extension=hit.extension,
        size=hit.size,
        modified=hit.modified,
        content=hit.content,
        highlights=list(hit.highlights),
        is_chunked=chunk is not None,
        total_chunks=hit.total_chunks if chunk is not None else 1,
        chunks=[chunk] if chunk is not None else [],
    )


def aggregate_hits(hits: list[SearchHit]) -> list[AggregatedResult]:
    """Collapse *hits* into one :class:`AggregatedResult` per file.

    Parameters
    ----------
    hits:
        Raw engine hits in engine order.

    Returns
    -------
    list[AggregatedResult]
        One result per distinct ``file_key``, sorted by descending score.
        Files with equal scores keep the order in which they were first
        seen.
    """
    groups: dict[str, AggregatedResult] = {}

    for hit in hits:
        chunk = _chunk_score(hit)
        existing = groups.get(hit.file_key)
        if existing is None:
            groups[hit.file_key] = _new_result(hit, chunk)
            continue

        if hit.score > existing.score:
            existing.score = hit.score
            existing.content = hit.content or existing.content
            existing.highlights = list(hit.highlights) or existing.highlights
        if chunk is not None:
            existing.chunks.append(chunk)
            existing.is_chunked = True
            existing.total_chunks = max(existing.total_chunks, hit.total_chunks)

    return sorted(groups.values(), key=lambda result: result.score, reverse=True)


def build_response(query: str, response: EngineResponse) -> SearchResponse:
    """Aggregate an engine response into the client-facing :class:`SearchResponse`.

    ``total`` counts files; ``total_chunks`` is the engine's own hit count
    and may exceed ``total`` when files are chunked.
    """
    results = aggregate_hits(response.hits)
    logger.debug(
        "Aggregated %d hits into %d files (engine total %d)",
        len(response.hits),
        len(results),
        response.total,
    )
    return SearchResponse(
        query=query,
        total=len(results),
        total_chunks=response.total,
        results=results,
    )
