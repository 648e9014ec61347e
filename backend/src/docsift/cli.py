"""Command-line interface for docsift, a thin wrapper over the query and search layers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click

from docsift.api.service import SearchService
from docsift.api.types import SearchResponse
from docsift.core.config import Settings
from docsift.core.exceptions import EngineUnavailableError, QueryError
from docsift.ingestion.chunker import split_text
from docsift.ingestion.pipeline import IndexingPipeline
from docsift.ingestion.reader import PlainTextExtractor
from docsift.search.elastic import to_elasticsearch
from docsift.search.memory import InMemorySearchEngine
from docsift.utils.logging import setup_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """docsift — Filterable full-text queries over chunked documents."""
    setup_logging(verbose=verbose, settings=Settings())
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _get_service() -> SearchService:
    return SearchService(InMemorySearchEngine(), settings=Settings())


@main.command()
@click.argument("query")
def parse(query: str) -> None:
    """Show the filters and boolean expression parsed from QUERY."""
    try:
        parsed = _get_service().parse(query)
    except QueryError as exc:
        raise click.ClickException(f"Invalid filter: {exc}") from exc
    click.echo(parsed.model_dump_json(indent=2, exclude_none=True))


@main.command("compile")
@click.argument("query")
@click.option("--elastic", is_flag=True, help="Print the Elasticsearch request body instead.")
@click.option("--size", "-n", default=20, help="Number of hits to request (with --elastic).")
def compile_query(query: str, elastic: bool, size: int) -> None:
    """Show the engine-agnostic query compiled from QUERY."""
    try:
        compiled = _get_service().compile(query)
    except QueryError as exc:
        raise click.ClickException(f"Invalid filter: {exc}") from exc

    if elastic:
        settings = Settings()
        body = to_elasticsearch(
            compiled,
            size=size,
            fragment_size=settings.highlight_fragment_size,
            number_of_fragments=settings.highlight_fragments,
            max_analyzed_offset=settings.chunk_size,
        )
        click.echo(f"POST /{settings.index_name}/_search")
        click.echo(json.dumps(body, indent=2))
    else:
        click.echo(compiled.model_dump_json(indent=2, exclude_none=True))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--size", "chunk_size", default=None, type=int, help="Chunk size in characters.")
@click.option("--overlap", default=None, type=int, help="Overlap between chunks in characters.")
def chunk(file: Path, chunk_size: int | None, overlap: int | None) -> None:
    """Show how FILE's text would be split into index records."""
    settings = Settings()
    text = PlainTextExtractor().extract(file)
    chunks = split_text(
        text,
        chunk_size if chunk_size is not None else settings.chunk_size,
        overlap if overlap is not None else settings.chunk_overlap,
    )
    click.echo(f"{file}: {len(text)} characters, {len(chunks)} chunk(s)")
    for item in chunks:
        click.echo(f"  [{item.index}] {item.start_offset}-{item.end_offset}")


def _print_results(response: SearchResponse) -> None:
    if not response.results:
        click.echo("No results found.")
        return

    click.echo(f"{response.total} files ({response.total_chunks} matching records)")
    for i, r in enumerate(response.results, 1):
        click.echo(f"\n{'─' * 60}")
        click.echo(f"  [{i}] {r.path}")
        chunk_note = f"  Chunks: {r.total_chunks}" if r.is_chunked else ""
        click.echo(f"      Score: {r.score:.4f}{chunk_note}")
        for fragment in r.highlights:
            click.echo(f"      ...{fragment}...")


@main.command()
@click.argument("query")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--top", "-n", default=20, help="Number of raw hits to request.")
def search(query: str, files: tuple[Path, ...], top: int) -> None:
    """Index FILES in memory and run QUERY against them."""
    settings = Settings()
    engine = InMemorySearchEngine(
        fragment_size=settings.highlight_fragment_size,
        max_fragments=settings.highlight_fragments,
    )
    stats = IndexingPipeline(engine, settings=settings).index_files(files)
    click.echo(f"Indexed {stats.total_files} files, skipped {stats.skipped_files}.")

    service = SearchService(engine, settings=settings)
    try:
        response = asyncio.run(service.search(query, size=top))
    except QueryError as exc:
        raise click.ClickException(f"Invalid filter: {exc}") from exc
    except EngineUnavailableError as exc:
        raise click.ClickException(str(exc)) from exc

    _print_results(response)
