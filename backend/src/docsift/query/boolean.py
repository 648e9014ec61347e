"""Boolean expression parser for the free-text part of a query.

Grammar::

    expr    := orTerm ("OR" orTerm)*
    orTerm  := andTerm ("AND" andTerm)*
    andTerm := word+

``AND`` binds tighter than ``OR``, so when both appear the root is an OR
node whose operands are each split on AND.  Keywords match in any case
but only act as connectives between two non-empty operands: a keyword at
the start or end of a run, or right after another connective, stays a
literal word.

Known limitations: there are no parentheses, so nested grouping cannot be
written, and there is no quoting, so a literal ``and``/``or`` between two
words always acts as a connective.
"""

from __future__ import annotations

import logging

from docsift.core.models import BoolExpression, MatchAll, Operator, TextExpression, TextLeaf
from docsift.query.tokenizer import OPERATOR_KEYWORDS, Token, TokenKind, join_tokens

logger = logging.getLogger(__name__)


def tokenize_text(text: str) -> list[Token]:
    """Split free text into word and connective-candidate tokens."""
    return [
        Token(TokenKind.OPERATOR if piece.upper() in OPERATOR_KEYWORDS else TokenKind.WORD, piece)
        for piece in text.split()
    ]


def _split_on(tokens: list[Token], keyword: str) -> list[list[Token]]:
    """Split *tokens* on connective *keyword*, keeping stray keywords as words."""
    segments: list[list[Token]] = [[]]
    last = len(tokens) - 1
    previous_was_separator = False

    for position, token in enumerate(tokens):
        is_separator = (
            token.kind is TokenKind.OPERATOR
            and token.value.upper() == keyword
            and 0 < position < last
            and not previous_was_separator
        )
        if is_separator:
            segments.append([])
        else:
            segments[-1].append(token)
        previous_was_separator = is_separator

    return [segment for segment in segments if segment]


class BooleanParser:
    """Parse word runs joined by AND/OR into a :class:`TextExpression` tree."""

    def parse(self, text: str) -> TextExpression:
        return self.parse_tokens(tokenize_text(text))

    def parse_tokens(self, tokens: list[Token]) -> TextExpression:
        if not tokens:
            return MatchAll()

        or_parts = _split_on(tokens, "OR")
        if len(or_parts) > 1:
            expression: TextExpression = BoolExpression(
                operator=Operator.OR,
                operands=[self._parse_and(part) for part in or_parts],
            )
        else:
            expression = self._parse_and(tokens)

        logger.debug("Parsed %r into %s", join_tokens(tokens), expression)
        return expression

    def _parse_and(self, tokens: list[Token]) -> TextExpression:
        and_parts = _split_on(tokens, "AND")
        if len(and_parts) > 1:
            return BoolExpression(
                operator=Operator.AND,
                operands=[TextLeaf(value=join_tokens(part)) for part in and_parts],
            )
        return TextLeaf(value=join_tokens(tokens))
