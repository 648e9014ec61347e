"""File metadata and plain-text extraction for indexing.

Parsing of PDF, Word or PowerPoint files is delegated to an external
extractor satisfying :class:`ContentExtractorProtocol`; this module only
ships a plain-text implementation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from docsift.core.models import FileDocument

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS: frozenset[str] = frozenset(
    ".txt .md .js .ts .jsx .tsx .json .csv .xml .html .css .scss "
    ".py .java .cpp .c .h .cs .php .rb .go .rs .sh .yaml .yml "
    ".sql .log .conf .ini .env .gitignore .dockerfile .makefile .readme".split()
)

DOCUMENT_EXTENSIONS: frozenset[str] = frozenset(
    ".pdf .docx .doc .pptx .ppt .ppsx .potx .xlsx .xls .odt .rtf".split()
)


def is_text_file(path: Path) -> bool:
    return path.suffix.lower() in TEXT_EXTENSIONS


@runtime_checkable
class ContentExtractorProtocol(Protocol):
    """Protocol for turning a file into a single text blob."""

    def supports(self, path: Path) -> bool:
        """Return ``True`` if this extractor can handle *path*."""
        ...

    def extract(self, path: Path) -> str:
        """Return the text of *path*, or an empty string on failure."""
        ...


class PlainTextExtractor:
    """Read text-like files as UTF-8, replacing undecodable bytes."""

    def supports(self, path: Path) -> bool:
        return is_text_file(path)

    def extract(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.warning("Could not read %s", path, exc_info=True)
            return ""


def read_file_metadata(path: Path) -> FileDocument:
    """Collect size, modification time and, where available, creation time.

    Creation time comes from ``st_birthtime``, which only some platforms
    and file systems provide; elsewhere it is ``None``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    stat = path.stat()
    birth_time = getattr(stat, "st_birthtime", None)
    return FileDocument(
        path=path,
        size_bytes=stat.st_size,
        modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        created=(
            datetime.fromtimestamp(birth_time, tz=timezone.utc)
            if birth_time is not None
            else None
        ),
    )
