"""
Domain layer for gitcms.

Contains pure domain objects with no I/O or side effects:
- Documents: FileInfo, FileContent, UpdateResult, RevisionHistoryEntry, ...
- Namespaces: NamespaceContext, Identity
- Schemas: SchemaInfo, SchemaField, TemplateInfo, ValidationResult
- Filename convention helpers

These objects are immutable and provide to_dict() for JSON output.
"""

from .document import (
    FileInfo,
    DirectoryEntry,
    FileContent,
    UpdateResult,
    RevisionAuthor,
    RevisionHistoryEntry,
    FileItem,
    Document,
    WriteResult,
    MoveResult,
    TemplateFileResult,
    ListQuery,
)
from .namespace import NamespaceContext, Identity, ANONYMOUS_USER, UNKNOWN_USER
from .schema import SchemaField, SchemaInfo, TemplateInfo, ValidationResult, schema_fields
from .filename import (
    ParsedFilename,
    parse_filename,
    build_filename,
    get_display_name,
    get_schema_type,
    is_valid_filename_format,
)

__all__ = [
    'FileInfo',
    'DirectoryEntry',
    'FileContent',
    'UpdateResult',
    'RevisionAuthor',
    'RevisionHistoryEntry',
    'FileItem',
    'Document',
    'WriteResult',
    'MoveResult',
    'TemplateFileResult',
    'ListQuery',
    'NamespaceContext',
    'Identity',
    'ANONYMOUS_USER',
    'UNKNOWN_USER',
    'SchemaField',
    'SchemaInfo',
    'TemplateInfo',
    'ValidationResult',
    'schema_fields',
    'ParsedFilename',
    'parse_filename',
    'build_filename',
    'get_display_name',
    'get_schema_type',
    'is_valid_filename_format',
]
