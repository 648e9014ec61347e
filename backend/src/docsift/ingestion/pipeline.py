"""Indexing of individual files into a chunk-aware index.

Each file is read for metadata, extracted to text, split into chunk
records and written to the index.  Reindexing a file always deletes its
previous records first, so the number of chunks may change freely between
runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from docsift.core.config import Settings
from docsift.core.models import IndexStats
from docsift.ingestion.chunker import build_records
from docsift.ingestion.reader import (
    ContentExtractorProtocol,
    PlainTextExtractor,
    is_text_file,
    read_file_metadata,
)
from docsift.search.base import IndexWriterProtocol

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """Orchestrates metadata collection, extraction, chunking and index writes.

    Parameters
    ----------
    writer:
        Index the records are written to.
    settings:
        Chunking and size-limit configuration.  When ``None`` a default
        :class:`Settings` instance is created.
    extractor:
        Text extractor; defaults to :class:`PlainTextExtractor`.
    """

    def __init__(
        self,
        writer: IndexWriterProtocol,
        settings: Settings | None = None,
        extractor: ContentExtractorProtocol | None = None,
    ) -> None:
        self._writer = writer
        self._settings = settings or Settings()
        self._extractor = extractor or PlainTextExtractor()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def index_file(self, path: Path) -> int:
        """Index a single file and return the number of records written.

        Files that are missing, unsupported by the extractor or larger than
        the configured limit are skipped and ``0`` is returned.
        """
        if not path.is_file():
            logger.debug("Skipping %s: not a file", path)
            return 0
        if not self._extractor.supports(path):
            logger.debug("Skipping %s: unsupported file type", path)
            return 0

        document = read_file_metadata(path)
        limit = (
            self._settings.max_text_file_bytes
            if is_text_file(path)
            else self._settings.max_file_bytes
        )
        if document.size_bytes > limit:
            logger.info(
                "Skipping large file: %s (%.1fMB)",
                path,
                document.size_bytes / 1024 / 1024,
            )
            return 0

        text = self._extractor.extract(path)
        records = build_records(
            document,
            text,
            chunk_size=self._settings.chunk_size,
            overlap=self._settings.chunk_overlap,
        )

        removed = self._writer.delete_file(document.file_key)
        self._writer.add_records(records)
        logger.debug(
            "Indexed %s: %d records (replaced %d)", path, len(records), removed
        )
        return len(records)

    def remove_file(self, path: Path) -> int:
        """Delete every record of *path* from the index."""
        removed = self._writer.delete_file(str(path))
        logger.debug("Removed %d records for %s", removed, path)
        return removed

    def index_files(self, paths: Iterable[Path]) -> IndexStats:
        """Index each of *paths* in turn.

        A failure on one file is logged and counted as skipped; the
        remaining files are still indexed.
        """
        stats = IndexStats()
        for path in paths:
            try:
                written = self.index_file(path)
            except Exception:
                logger.warning("Error indexing %s", path, exc_info=True)
                written = 0

            if written:
                stats.total_files += 1
                stats.total_records += written
            else:
                stats.skipped_files += 1

        stats.last_indexed = datetime.now(timezone.utc)
        logger.info(
            "Indexed %d files (%d records), skipped %d",
            stats.total_files,
            stats.total_records,
            stats.skipped_files,
        )
        return stats
