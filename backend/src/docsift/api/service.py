"""UI-agnostic service facade for docsift.

Parses and compiles raw queries, runs them against a search engine with a
bounded wait, and merges chunk hits into per-file results.
"""

from __future__ import annotations

import asyncio
import logging

from docsift.core.config import Settings
from docsift.core.exceptions import EngineUnavailableError
from docsift.core.models import CompiledQuery, EngineResponse, ParsedQuery, SearchResponse
from docsift.query.compiler import QueryCompiler
from docsift.query.parser import QueryParser
from docsift.search.aggregator import build_response
from docsift.search.base import SearchEngineProtocol

logger = logging.getLogger(__name__)


class SearchService:
    """High-level entry point for running user queries.

    Parameters
    ----------
    engine:
        Engine that executes compiled queries.
    settings:
        Application configuration.  When ``None`` a default
        :class:`Settings` instance is created.
    parser:
        Query parser; a default instance is created when ``None``.
    compiler:
        Query compiler; a default instance is created when ``None``.
    """

    def __init__(
        self,
        engine: SearchEngineProtocol,
        settings: Settings | None = None,
        parser: QueryParser | None = None,
        compiler: QueryCompiler | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings or Settings()
        self._parser = parser or QueryParser()
        self._compiler = compiler or QueryCompiler()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, query: str) -> ParsedQuery:
        """Parse *query* into filters and a text expression.

        Raises
        ------
        QueryError
            If a filter value is malformed.
        """
        return self._parser.parse(query)

    def compile(self, query: str) -> CompiledQuery:
        """Parse and compile *query*.

        Raises
        ------
        QueryError
            If a filter value is malformed.  Nothing is compiled in that
            case, so a partially filtered query can never run.
        """
        return self._compiler.compile_parsed(self.parse(query))

    async def search(self, query: str, size: int | None = None) -> SearchResponse:
        """Run *query* and return one result per matching file.

        Parameters
        ----------
        query:
            Raw query string, filters and boolean text combined.
        size:
            Maximum number of raw engine hits to request; defaults to
            ``settings.default_result_size``.

        Raises
        ------
        QueryError
            If a filter value is malformed.
        EngineUnavailableError
            If the engine does not answer within
            ``settings.engine_timeout_seconds`` or cannot be reached.
        """
        compiled = self.compile(query)
        if size is None:
            size = self._settings.default_result_size

        response = await self._execute(compiled, size)
        result = build_response(query, response)
        logger.info(
            "Query %r matched %d files (%d records)",
            query,
            result.total,
            result.total_chunks,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _execute(self, compiled: CompiledQuery, size: int) -> EngineResponse:
        timeout = self._settings.engine_timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._engine.search, compiled, size),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Search engine did not answer within %.1fs", timeout)
            raise EngineUnavailableError(
                f"Search engine did not answer within {timeout}s"
            ) from exc
        except OSError as exc:
            logger.error("Search engine unreachable: %s", exc)
            raise EngineUnavailableError(f"Search engine unreachable: {exc}") from exc
