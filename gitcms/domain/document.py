"""
Document domain objects for gitcms.

These describe markdown documents as the provider drivers and the file
orchestration service see them. All are immutable; ``frontmatter`` dicts
are shallow-copied on serialization.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FileInfo:
    """A file entry at HEAD, as returned by a directory listing."""
    name: str
    path: str
    revision_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': self.path,
            'revision_id': self.revision_id,
        }


@dataclass(frozen=True)
class DirectoryEntry:
    """Raw listing entry; ``kind`` is 'file' or 'dir'."""
    name: str
    path: str
    kind: str
    revision_id: str = ""

    @property
    def is_file(self) -> bool:
        return self.kind == 'file'

    @property
    def is_dir(self) -> bool:
        return self.kind == 'dir'


@dataclass(frozen=True)
class FileContent:
    """One document decoded at one revision."""
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    content: str = ""
    revision_id: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frontmatter': dict(self.frontmatter),
            'content': self.content,
            'revision_id': self.revision_id,
            'path': self.path,
        }


@dataclass(frozen=True)
class UpdateResult:
    """Result of a mutating driver call."""
    success: bool
    revision_id: Optional[str] = None
    commit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'revision_id': self.revision_id,
            'commit_id': self.commit_id,
        }


@dataclass(frozen=True)
class RevisionAuthor:
    name: str
    email: str
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'email': self.email, 'date': self.date}


@dataclass(frozen=True)
class RevisionHistoryEntry:
    """One commit touching a file. Lists of these are newest-first."""
    revision_id: str
    short_id: str
    message: str
    author: RevisionAuthor
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'revision_id': self.revision_id,
            'short_id': self.short_id,
            'message': self.message,
            'author': self.author.to_dict(),
            'url': self.url,
        }


@dataclass(frozen=True)
class FileItem:
    """A listing row enriched with filename-convention metadata."""
    name: str
    path: str
    revision_id: str
    display_name: str
    schema_type: Optional[str]
    is_valid_format: bool
    namespace: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': self.path,
            'revision_id': self.revision_id,
            'display_name': self.display_name,
            'schema_type': self.schema_type,
            'is_valid_format': self.is_valid_format,
            'namespace': self.namespace,
        }


@dataclass(frozen=True)
class Document:
    """A document as returned by the file service."""
    name: str
    path: str
    revision_id: Optional[str]
    content: str
    frontmatter: Dict[str, Any]
    namespace: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': self.path,
            'revision_id': self.revision_id,
            'content': self.content,
            'frontmatter': dict(self.frontmatter),
            'namespace': self.namespace,
        }


@dataclass(frozen=True)
class WriteResult:
    path: str
    revision_id: Optional[str]
    commit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'revision_id': self.revision_id,
            'commit_id': self.commit_id,
        }


@dataclass(frozen=True)
class TemplateFileResult:
    """A document created from a rendered template."""
    path: str
    revision_id: Optional[str]
    content: str
    commit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'revision_id': self.revision_id,
            'commit_id': self.commit_id,
            'content': self.content,
        }


@dataclass(frozen=True)
class MoveResult:
    old_path: str
    new_path: str
    revision_id: Optional[str]
    commit_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'old_path': self.old_path,
            'new_path': self.new_path,
            'revision_id': self.revision_id,
            'commit_id': self.commit_id,
        }


@dataclass(frozen=True)
class ListQuery:
    """Filtering and pagination for file listings."""
    search: Optional[str] = None
    schema_type: Optional[str] = None
    page: int = 1
    limit: int = 50
