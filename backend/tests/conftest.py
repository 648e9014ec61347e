"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from docsift.core.config import Settings
from docsift.core.models import ChunkRecord
from docsift.ingestion.chunker import make_record_id
from docsift.query.compiler import QueryCompiler
from docsift.query.parser import QueryParser
from docsift.search.memory import InMemorySearchEngine


@pytest.fixture
def parser() -> QueryParser:
    return QueryParser()


@pytest.fixture
def compiler() -> QueryCompiler:
    return QueryCompiler()


@pytest.fixture
def settings() -> Settings:
    """Settings with small chunks so tests can exercise chunking cheaply."""
    return Settings(chunk_size=40, chunk_overlap=10, engine_timeout_seconds=1.0)


@pytest.fixture
def engine() -> InMemorySearchEngine:
    return InMemorySearchEngine()


@pytest.fixture
def make_record() -> Callable[..., ChunkRecord]:
    """Factory for index records with sensible defaults.

    Usage:
        make_record("/docs/a.txt", "some content", size=2048)
    """

    def _make(file_key: str, content: str, chunk_index: int = 0, **overrides: Any) -> ChunkRecord:
        filename = file_key.rsplit("/", 1)[-1]
        fields: dict[str, Any] = {
            "record_id": make_record_id(file_key, chunk_index),
            "file_key": file_key,
            "filename": filename,
            "path": file_key,
            "extension": "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else "",
            "size": 1024,
            "modified": datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
            "content": content,
            "chunk_index": chunk_index,
        }
        fields.update(overrides)
        return ChunkRecord(**fields)

    return _make
