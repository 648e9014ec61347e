"""Fixed-window chunking of over-long extracted text.

Documents whose text exceeds the chunk size are stored as several
overlapping records that share the same file key.  Splitting is purely
positional so identical text always yields identical chunks; the indexer
relies on this when it deletes and rewrites a file's records.
"""

from __future__ import annotations

import hashlib
import logging

from docsift.core.exceptions import ChunkingError
from docsift.core.models import ChunkRecord, FileDocument, TextChunk

logger = logging.getLogger(__name__)


def make_record_id(file_key: str, chunk_index: int) -> str:
    """Deterministic record identifier from file key and chunk index."""
    payload = f"{file_key}:{chunk_index}"
    return hashlib.md5(payload.encode()).hexdigest()


def split_text(text: str, chunk_size: int, overlap: int) -> list[TextChunk]:
    """Split *text* into windows of *chunk_size* characters.

    Consecutive windows start ``chunk_size - overlap`` characters apart, so
    each shares *overlap* characters with the next.  The final window is
    clamped to the end of the text.  Text no longer than *chunk_size*
    (including empty text) yields a single chunk.

    Raises
    ------
    ChunkingError
        If *chunk_size* is not positive or *overlap* is outside
        ``[0, chunk_size)``.
    """
    if chunk_size <= 0:
        raise ChunkingError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ChunkingError(
            f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
        )

    length = len(text)
    if length <= chunk_size:
        return [TextChunk(content=text, index=0, start_offset=0, end_offset=length)]

    stride = chunk_size - overlap
    chunks: list[TextChunk] = []
    position = 0
    while True:
        end = min(position + chunk_size, length)
        chunks.append(
            TextChunk(
                content=text[position:end],
                index=len(chunks),
                start_offset=position,
                end_offset=end,
            )
        )
        if end >= length:
            break
        position += stride

    logger.debug(
        "Split %d characters into %d chunks (size=%d, overlap=%d)",
        length,
        len(chunks),
        chunk_size,
        overlap,
    )
    return chunks


def build_records(
    document: FileDocument,
    text: str,
    chunk_size: int,
    overlap: int,
) -> list[ChunkRecord]:
    """Turn a document and its extracted text into index records.

    Every record repeats the file's metadata so that filters apply to each
    chunk independently.  ``is_chunked`` is set only when the text needed
    more than one window.
    """
    chunks = split_text(text, chunk_size, overlap)
    is_chunked = len(chunks) > 1

    return [
        ChunkRecord(
            record_id=make_record_id(document.file_key, chunk.index),
            file_key=document.file_key,
            filename=document.filename,
            path=str(document.path),
            extension=document.extension,
            size=document.size_bytes,
            modified=document.modified,
            created=document.created,
            creator=document.creator,
            last_editor=document.last_editor,
            content=chunk.content,
            is_chunked=is_chunked,
            chunk_index=chunk.index,
            total_chunks=len(chunks),
            start_offset=chunk.start_offset,
            end_offset=chunk.end_offset,
        )
        for chunk in chunks
    ]
