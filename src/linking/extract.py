"""Wikilink extraction from a single line of markdown."""

import re
from typing import Iterator

# [[identifier]] or [[identifier|alias]]; the alias is dropped
WIKILINK_PATTERN = re.compile(r"\[\[([^\]\|]+)(?:\|[^\]\|]+)?\]\]")


def extract_references(line: str) -> Iterator[str]:
    """
    Yield the identifier of every wikilink on a line, left to right.

    Matching is case-sensitive and does not validate identifiers. Malformed
    bracket sequences yield nothing for their position.

    >>> list(extract_references("Met [[Alice|Al]] and [[Bob]]"))
    ['Alice', 'Bob']
    """
    for match in WIKILINK_PATTERN.finditer(line):
        yield match.group(1)
