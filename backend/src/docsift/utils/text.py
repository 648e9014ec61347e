"""Text analysis shared by the in-memory engine.

Mirrors a ``standard`` tokenizer followed by ``lowercase`` and ``stop``
filters: words are lower-cased, English stop words are dropped, and the
remaining terms keep their original positions so phrase gaps stay
meaningful.
"""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"\w+")

# Default English stop set of the ``stop`` token filter.
STOP_WORDS: frozenset[str] = frozenset(
    "a an and are as at be but by for if in into is it no not of on or "
    "such that the their then there these they this to was will with".split()
)


def analyze(text: str) -> list[tuple[str, int]]:
    """Return ``(term, position)`` pairs for the non-stop-word terms of *text*."""
    terms: list[tuple[str, int]] = []
    for position, match in enumerate(_WORD_RE.finditer(text)):
        term = match.group(0).lower()
        if term not in STOP_WORDS:
            terms.append((term, position))
    return terms


def tokenize(text: str) -> list[str]:
    """Lower-cased, stop-word filtered terms of *text*."""
    return [term for term, _ in analyze(text)]


def build_positions(text: str) -> dict[str, list[int]]:
    """Map every term of *text* to the ascending positions it occurs at."""
    positions: dict[str, list[int]] = {}
    for term, position in analyze(text):
        positions.setdefault(term, []).append(position)
    return positions


def highlight(
    text: str,
    terms: set[str],
    fragment_size: int = 150,
    max_fragments: int = 3,
    pre_tag: str = "<em>",
    post_tag: str = "</em>",
) -> list[str]:
    """Return up to *max_fragments* snippets of *text* with *terms* wrapped in tags.

    Fragments are roughly *fragment_size* characters long, centred on the
    first match they contain, and never overlap.
    """
    if not terms:
        return []

    spans = [
        (match.start(), match.end())
        for match in _WORD_RE.finditer(text)
        if match.group(0).lower() in terms
    ]

    fragments: list[str] = []
    covered_until = 0
    for start, _end in spans:
        if len(fragments) >= max_fragments:
            break
        if start < covered_until:
            continue

        frag_start = max(covered_until, start - fragment_size // 2)
        frag_end = min(len(text), frag_start + fragment_size)

        parts: list[str] = []
        cursor = frag_start
        for span_start, span_end in spans:
            if span_start < frag_start or span_end > frag_end:
                continue
            parts.append(text[cursor:span_start])
            parts.append(pre_tag + text[span_start:span_end] + post_tag)
            cursor = span_end
        parts.append(text[cursor:frag_end])

        fragments.append("".join(parts).strip())
        covered_until = frag_end

    return fragments
