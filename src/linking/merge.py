"""
Idempotent merge of sibling literals into a frontmatter array field.

Rules applied to the field on every merge:
- absent, null or an empty string becomes an empty list
- a scalar becomes a one-element list holding the original value
- each literal not already present (exact match) is appended in order

Nothing else in the frontmatter is touched, and existing entries keep their
positions. The store only rewrites the document when something was appended.
"""

from typing import Any, Dict, Sequence

from src.shared.observability import get_logger
from src.vault import VaultStore

logger = get_logger(__name__)


def merge_into_frontmatter(
    frontmatter: Dict[str, Any], literals: Sequence[str], field_name: str
) -> bool:
    """
    Union literals into frontmatter[field_name] in place.

    Returns:
        True if at least one literal was appended
    """
    current = frontmatter.get(field_name)
    if current is None or current == "":
        entries = []
    elif isinstance(current, list):
        entries = current
    else:
        # Field written by hand before it held a list
        entries = [current]

    changed = False
    for literal in literals:
        if literal not in entries:
            entries.append(literal)
            changed = True

    # Normalization alone is not a change; the store drops it unless we appended
    frontmatter[field_name] = entries
    return changed


def merge_siblings(
    store: VaultStore, target: str, literals: Sequence[str], field_name: str
) -> bool:
    """
    Merge literals into the target document's frontmatter field.

    Raises whatever the store raises (MetadataParseError, DocumentNotFound,
    StoreIOError); the caller decides the scope of the failure.

    Returns:
        Whether the target document was rewritten
    """
    if not literals:
        return False

    changed = store.process_frontmatter(
        target,
        lambda frontmatter: merge_into_frontmatter(frontmatter, literals, field_name),
    )
    if changed:
        logger.info(
            "Sibling mentions added",
            target=target,
            field=field_name,
            literals=list(literals),
        )
    return changed
