"""
Filename convention for gitcms documents.

Documents are named ``{display_name}.{schema_type}.md``. A filename with
fewer than two dot-separated segments before ``.md`` has no schema type
and is treated as a flat name.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ParsedFilename:
    name: str
    schema_type: str
    full_path: str


def parse_filename(filename: str) -> Optional[ParsedFilename]:
    """
    Parse a filename into display name and schema type.

    Args:
        filename: Bare filename or path, e.g. "team/customer-service.simple-agent.md"

    Returns:
        ParsedFilename, or None when the name does not follow the convention
    """
    base_name = filename.split('/')[-1] or filename
    if not base_name.endswith('.md'):
        return None

    parts = base_name[:-3].split('.')
    if len(parts) < 2:
        return None

    schema_type = parts[-1]
    name = '.'.join(parts[:-1])
    if not name or not schema_type:
        return None

    return ParsedFilename(name=name, schema_type=schema_type, full_path=filename)


def build_filename(name: str, schema_type: str) -> str:
    return f"{name}.{schema_type}.md"


def get_display_name(filename: str) -> str:
    """Display name, or the filename minus ``.md`` when unparseable."""
    parsed = parse_filename(filename)
    if parsed:
        return parsed.name
    base_name = filename.split('/')[-1]
    return base_name[:-3] if base_name.endswith('.md') else base_name


def get_schema_type(filename: str) -> Optional[str]:
    parsed = parse_filename(filename)
    return parsed.schema_type if parsed else None


def is_valid_filename_format(filename: str) -> bool:
    return parse_filename(filename) is not None
