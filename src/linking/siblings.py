"""Sibling sets for a group of wikilinks that share a line."""

from typing import Dict, List, Sequence


def to_literal(token: str) -> str:
    """Wrap a token back into wikilink syntax."""
    return f"[[{token}]]"


def compute_sibling_sets(tokens: Sequence[str]) -> Dict[int, List[str]]:
    """
    Map each token index to the literals of every other token on the line.

    Order of appearance is kept and repeated tokens are not collapsed;
    duplicates are dropped later, when merging into a target's field.

    Raises:
        ValueError: Fewer than two tokens (no siblings to infer)
    """
    if len(tokens) < 2:
        raise ValueError(f"sibling sets need at least 2 tokens, got {len(tokens)}")

    literals = [to_literal(token) for token in tokens]
    return {
        i: [literal for j, literal in enumerate(literals) if j != i]
        for i in range(len(tokens))
    }
