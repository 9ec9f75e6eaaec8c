"""
Frontmatter codec for gitcms.

A document is a YAML header block delimited by ``---`` lines followed by
markdown content::

    ---
    title: Hello
    tags: [a, b]
    ---
    # Body

Decoding never fails: anything that is not a well-formed header degrades
to empty metadata.
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple

import yaml

from .domain import FileContent

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r'\A---\n(.*?)\n---\n(.*)\Z', re.DOTALL)


def decode(raw: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a document into its frontmatter mapping and markdown content.

    Args:
        raw: Full document text

    Returns:
        Tuple of (frontmatter, content). When ``raw`` has no header block,
        returns ({}, raw) unchanged.
    """
    match = FRONTMATTER_PATTERN.match(raw)
    if not match:
        return {}, raw

    header, content = match.group(1), match.group(2)
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse YAML frontmatter: {e}")
        return {}, content

    if data is None:
        return {}, content
    if not isinstance(data, dict):
        logger.warning(f"Frontmatter is a {type(data).__name__}, not a mapping; ignoring it")
        return {}, content
    return data, content


def encode(frontmatter: Optional[Dict[str, Any]], content: str) -> str:
    """Serialize frontmatter and content back into one document."""
    header = yaml.safe_dump(
        frontmatter or {},
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"---\n{header}---\n{content}"


def parse_document(raw: str, revision_id: Optional[str] = None, path: Optional[str] = None) -> FileContent:
    """Decode ``raw`` into a FileContent carrying revision and path."""
    frontmatter, content = decode(raw)
    return FileContent(
        frontmatter=frontmatter,
        content=content,
        revision_id=revision_id,
        path=path,
    )
