"""Text helpers including the tokenizer shared by indexing and querying."""

from __future__ import annotations

import re
from typing import Iterator, List

# Words may be joined by '.', '/' or '-' so that paths like "golang.org/x/net"
# survive as a single token. '~' and '+' are legal inside path segments.
TOKEN_PATTERN = re.compile(r"[\w~+]+(?:[./-][\w~+]+)*", re.UNICODE)

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if",
        "in", "into", "is", "it", "of", "on", "or", "such", "that", "the",
        "their", "then", "there", "these", "they", "this", "to", "was",
        "will", "with",
    }
)


def iter_tokens(text: str) -> Iterator[str]:
    """Yield case-folded tokens of ``text``, skipping stop words."""
    if not text:
        return
    for match in TOKEN_PATTERN.finditer(text):
        token = match.group(0).casefold()
        if token and token not in STOP_WORDS:
            yield token


def tokenize(text: str) -> List[str]:
    """Return the distinct tokens of ``text`` in order of first appearance."""
    return list(dict.fromkeys(iter_tokens(text)))

