"""Pydantic domain models for docsift."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class RangeKind(str, Enum):
    """Whether a range filter matches one value or a span of values."""

    EXACT = "exact"
    RANGE = "range"


class DateRange(BaseModel):
    """A date filter.

    Bounds are ISO-8601 UTC instants with millisecond precision, e.g.
    ``2024-01-01T00:00:00.000Z``.  For ``EXACT`` ranges :attr:`date` holds
    the start of the requested day.
    """

    kind: RangeKind
    date: str | None = None
    gt: str | None = None
    gte: str | None = None
    lt: str | None = None
    lte: str | None = None


class SizeRange(BaseModel):
    """A size filter with bounds in whole bytes."""

    kind: RangeKind
    size: int | None = None
    gt: int | None = None
    gte: int | None = None
    lt: int | None = None
    lte: int | None = None


class FilterSet(BaseModel):
    """Typed filters extracted from a raw query string."""

    file_types: list[str] = Field(default_factory=list)
    created: DateRange | None = None
    modified: DateRange | None = None
    creator: str | None = None
    editor: str | None = None
    size: SizeRange | None = None

    def is_empty(self) -> bool:
        return not self.file_types and all(
            value is None
            for value in (self.created, self.modified, self.creator, self.editor, self.size)
        )


# ---------------------------------------------------------------------------
# Boolean text expressions
# ---------------------------------------------------------------------------


class Operator(str, Enum):
    AND = "and"
    OR = "or"


class MatchAll(BaseModel):
    """Sentinel expression for a query with no free text."""

    type: Literal["match_all"] = "match_all"


class TextLeaf(BaseModel):
    """A run of literal words between boolean connectives."""

    type: Literal["text"] = "text"
    value: str

    @property
    def words(self) -> list[str]:
        return self.value.split()


class BoolExpression(BaseModel):
    """Operands joined by a single boolean connective."""

    type: Literal["bool"] = "bool"
    operator: Operator
    operands: list[TextExpression]


TextExpression = Annotated[
    Union[MatchAll, TextLeaf, BoolExpression],
    Field(discriminator="type"),
]


class ParsedQuery(BaseModel):
    """Result of parsing a raw query: typed filters plus a text expression."""

    filters: FilterSet = Field(default_factory=FilterSet)
    expression: TextExpression = Field(default_factory=MatchAll)
    original: str = ""


# ---------------------------------------------------------------------------
# Compiled, engine-agnostic query
# ---------------------------------------------------------------------------


class PredicateOp(str, Enum):
    IN = "in"
    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


class FilterPredicate(BaseModel):
    """A hard, non-scoring filter on a single indexed field."""

    field: str
    op: PredicateOp
    value: Union[int, float, str, list[str]]


class MatchMode(str, Enum):
    TERM = "term"
    PHRASE = "phrase"


class FieldMatch(BaseModel):
    """Target field of a text clause.

    ``slop`` is the allowed word gap for phrase matching and is ignored
    in term mode.
    """

    field: str
    boost: float = 1.0
    slop: int | None = None


class TermClause(BaseModel):
    """A scored text match across one or more fields.

    A clause matches when any of its fields matches.  With
    ``constant_score`` each matching field contributes exactly its boost,
    independent of document length.
    """

    type: Literal["term"] = "term"
    text: str
    mode: MatchMode
    fields: list[FieldMatch]
    constant_score: bool = False


class BoolClause(BaseModel):
    """Boolean combination of clauses.

    ``boosters`` never affect eligibility; they only add to the score of
    documents that already match.
    """

    type: Literal["bool"] = "bool"
    operator: Operator
    clauses: list[Clause]
    boosters: list[Clause] = Field(default_factory=list)


class MatchAllClause(BaseModel):
    type: Literal["match_all"] = "match_all"


Clause = Annotated[
    Union[TermClause, BoolClause, MatchAllClause],
    Field(discriminator="type"),
]


class CompiledQuery(BaseModel):
    """Filter predicates plus a scored clause tree, ready for an engine adapter."""

    filters: list[FilterPredicate] = Field(default_factory=list)
    clause: Clause = Field(default_factory=MatchAllClause)


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


class TextChunk(BaseModel):
    """A window of extracted text with absolute character offsets."""

    content: str
    index: int
    start_offset: int
    end_offset: int


class FileDocument(BaseModel):
    """Metadata about a file that is about to be indexed."""

    path: Path
    size_bytes: int
    modified: datetime
    created: datetime | None = None
    creator: str | None = None
    last_editor: str | None = None

    @property
    def file_key(self) -> str:
        return str(self.path)

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()


class ChunkRecord(BaseModel):
    """One indexed record.  Every chunk of a file shares ``file_key``."""

    record_id: str
    file_key: str
    filename: str
    path: str
    extension: str
    size: int
    modified: datetime
    created: datetime | None = None
    creator: str | None = None
    last_editor: str | None = None
    content: str = ""
    is_chunked: bool = False
    chunk_index: int = 0
    total_chunks: int = 1
    start_offset: int = 0
    end_offset: int = 0


class IndexStats(BaseModel):
    """Summary of an indexing run."""

    total_files: int = 0
    total_records: int = 0
    skipped_files: int = 0
    last_indexed: datetime | None = None


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------


class SearchHit(BaseModel):
    """A single record returned by the search engine."""

    file_key: str
    score: float
    content: str = ""
    highlights: list[str] = Field(default_factory=list)
    chunk_index: int | None = None
    is_chunked: bool = False
    total_chunks: int = 1
    filename: str = ""
    path: str = ""
    extension: str = ""
    size: int | None = None
    modified: datetime | None = None


class EngineResponse(BaseModel):
    """Raw hits from the engine plus its total hit count."""

    hits: list[SearchHit] = Field(default_factory=list)
    total: int = 0


class ChunkScore(BaseModel):
    chunk_index: int
    score: float


class AggregatedResult(BaseModel):
    """One logical file, merged from all of its matching chunks."""

    file_key: str
    score: float
    filename: str = ""
    path: str = ""
    extension: str = ""
    size: int | None = None
    modified: datetime | None = None
    content: str = ""
    highlights: list[str] = Field(default_factory=list)
    is_chunked: bool = False
    total_chunks: int = 1
    chunks: list[ChunkScore] = Field(default_factory=list, exclude=True)


class SearchResponse(BaseModel):
    query: str
    total: int
    total_chunks: int
    results: list[AggregatedResult] = Field(default_factory=list)


BoolExpression.model_rebuild()
BoolClause.model_rebuild()
ParsedQuery.model_rebuild()
CompiledQuery.model_rebuild()
