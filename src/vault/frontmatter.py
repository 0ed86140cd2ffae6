# YAML frontmatter split/join for markdown documents

import re
from typing import Any, Dict, Optional, Tuple

import yaml

# Frontmatter must open on the very first line; the closing fence may be the
# last line of the file. An empty block (--- immediately followed by ---) is valid.
_FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


# Long scalars stay on one line instead of being folded at 80 columns
YAML_LINE_WIDTH = 1_000_000


class FrontmatterError(ValueError):
    """Raised when a frontmatter block exists but is not a YAML mapping."""


def split_frontmatter(raw_text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    Separate the leading YAML frontmatter from the document body.

    Example:
        ---
        mentions:
          - "[[Bob]]"
        ---

        Body starts here

    Args:
        raw_text: Full document text

    Returns:
        (metadata, body). metadata is None when the document has no
        frontmatter block, in which case body is the full text.

    Raises:
        FrontmatterError: If the block is not valid YAML or not a mapping
    """
    match = _FRONTMATTER_PATTERN.match(raw_text)
    if not match:
        return None, raw_text

    try:
        metadata = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise FrontmatterError(f"invalid YAML frontmatter: {e}") from e

    # Empty block parses to None
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontmatterError(
            f"frontmatter must be a mapping, got {type(metadata).__name__}"
        )

    return metadata, raw_text[match.end() :]


def detect_newline(text: str) -> str:
    """Line ending of the first line, CRLF or LF."""
    end = text.find("\n")
    if end > 0 and text[end - 1] == "\r":
        return "\r\n"
    return "\n"


def render_frontmatter(
    metadata: Dict[str, Any], body: str, newline: str = "\n"
) -> str:
    """
    Serialize metadata back in front of body, keeping key order.

    The body is emitted as given; newline only applies to the block itself.
    """
    block = yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=YAML_LINE_WIDTH,
    )
    if not metadata:
        block = ""
    fence = "---" + newline
    return fence + block.replace("\n", newline) + fence + body
