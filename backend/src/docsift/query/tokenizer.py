"""Single-pass tokenizer for the query language.

The raw query is split on whitespace once.  Each piece becomes a filter
clause (``key:value`` with a recognised key, found anywhere in the piece),
a connective candidate (``AND``/``OR`` in any case) or a plain word.  Text
in front of a clause is kept as a separate word.  Whether a connective
candidate really joins two operands is left to the boolean parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

FILTER_KEYS: tuple[str, ...] = ("filetype", "created", "modified", "creator", "editor", "size")

_FILTER_RE = re.compile(
    r"(" + "|".join(FILTER_KEYS) + r"):(\S+)",
    re.IGNORECASE,
)

OPERATOR_KEYWORDS: frozenset[str] = frozenset({"AND", "OR"})


class TokenKind(str, Enum):
    FILTER = "filter"
    WORD = "word"
    OPERATOR = "operator"


@dataclass(frozen=True)
class Token:
    """A whitespace-delimited piece of the query.

    ``key`` is the lower-cased filter name for ``FILTER`` tokens; ``value``
    is the clause value for filters and the original text otherwise.
    """

    kind: TokenKind
    value: str
    key: str | None = None


def tokenize_query(query: str) -> list[Token]:
    """Split *query* into filter, word and operator tokens, left to right."""
    tokens: list[Token] = []
    for piece in query.split():
        match = _FILTER_RE.search(piece)
        if match:
            # Text glued to the front of a clause, e.g. "report,filetype:pdf".
            if match.start():
                tokens.append(Token(TokenKind.WORD, piece[: match.start()]))
            tokens.append(Token(TokenKind.FILTER, match.group(2), match.group(1).lower()))
        elif piece.upper() in OPERATOR_KEYWORDS:
            tokens.append(Token(TokenKind.OPERATOR, piece))
        else:
            tokens.append(Token(TokenKind.WORD, piece))
    return tokens


def join_tokens(tokens: list[Token]) -> str:
    """Render tokens back to text separated by single spaces."""
    return " ".join(token.value for token in tokens)
