"""
File orchestration service for gitcms.

Combines the namespace resolver with a provider driver to implement the
document operations the outer layers call: list, get, create, update,
delete, move, history and get-at-revision.

Paths given to this service are relative to the driver's root path and
to the namespace. Namespace ``None`` or the default namespace means the
root; any other namespace becomes a directory prefix.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..domain import (
    Document,
    FileContent,
    FileInfo,
    FileItem,
    ListQuery,
    MoveResult,
    NamespaceContext,
    RevisionHistoryEntry,
    WriteResult,
    get_display_name,
    get_schema_type,
    is_valid_filename_format,
)
from ..errors import (
    ConflictError,
    FileOperationError,
    GitCmsError,
    GitProviderError,
    NamespaceError,
    NotFoundError,
    ValidationError,
)
from ..infra import ProviderDriver, join_path
from .namespace_service import NamespaceResolver, validate_namespace, validate_path

logger = logging.getLogger(__name__)

PASSTHROUGH_ERRORS = (ValidationError, NamespaceError, NotFoundError, FileOperationError)


class FileService:
    """
    Document CRUD and history over one remote repository.

    Example:
        service = FileService(create_driver(config), NamespaceResolver(settings))
        result = service.create_file("foo.bar.md", "# Hi", namespace="team-x")
        doc = service.get_file("foo.bar.md", namespace="team-x")
    """

    def __init__(self, driver: ProviderDriver, resolver: Optional[NamespaceResolver] = None):
        """
        Initialize FileService.

        Args:
            driver: Provider driver for the document repository
            resolver: Namespace resolver (namespaces disabled if None)
        """
        self.driver = driver
        self.resolver = resolver or NamespaceResolver()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _is_root_namespace(self, namespace: Optional[str]) -> bool:
        return not namespace or namespace == self.resolver.default_namespace

    def namespaced_path(self, filename: str, namespace: Optional[str] = None) -> str:
        """
        Resolve ``filename`` within ``namespace`` to a root-relative path.

        Raises:
            ValidationError: If the filename or namespace is unsafe
        """
        validate_path(filename)
        if self._is_root_namespace(namespace):
            return filename
        validate_namespace(namespace)
        if filename.startswith(f"{namespace}/"):
            return filename
        return f"{namespace}/{filename}"

    def _repo_path(self, relative_path: str) -> str:
        return join_path(self.driver.root_path, relative_path)

    def _relative(self, repo_path: str) -> str:
        root = self.driver.root_path
        if root and repo_path.startswith(f"{root}/"):
            return repo_path[len(root) + 1:]
        return repo_path

    def _namespace_of(self, relative_path: str) -> str:
        return self.resolver.from_path(relative_path).namespace

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, operation: str, filename: str) -> Iterator[None]:
        """Translate driver failures into the service's error kinds."""
        try:
            yield
        except PASSTHROUGH_ERRORS:
            raise
        except ConflictError as e:
            if operation == 'create':
                raise ValidationError(f"File '{filename}' already exists", {'filename': filename}) from e
            raise
        except GitCmsError as e:
            message = e.message.lower()
            if isinstance(e, GitProviderError) and e.is_not_found:
                raise NotFoundError('File', filename) from e
            if operation == 'create' and 'already exists' in message:
                raise ValidationError(f"File '{filename}' already exists", {'filename': filename}) from e
            logger.error(f"File {operation} failed for {filename}: {e.message}")
            raise FileOperationError(operation, filename, e.message, e) from e

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _to_item(self, info: FileInfo) -> FileItem:
        relative = self._relative(info.path)
        return FileItem(
            name=info.name,
            path=relative,
            revision_id=info.revision_id,
            display_name=get_display_name(info.name),
            schema_type=get_schema_type(info.name),
            is_valid_format=is_valid_filename_format(info.name),
            namespace=self._namespace_of(relative),
        )

    def list_files(
        self,
        query: Optional[ListQuery] = None,
        available_namespaces: Optional[Sequence[str]] = None,
    ) -> List[FileItem]:
        """
        List documents visible to a caller.

        Args:
            query: Search, schema-type filter and pagination
            available_namespaces: Namespaces the caller may see; None or
                empty means anonymous, which sees only root-level files

        Returns:
            One page of FileItems
        """
        query = query or ListQuery()
        if query.page < 1 or query.limit < 1:
            raise ValidationError("page and limit must be positive", {'page': query.page, 'limit': query.limit})

        with self._operation('list', '*'):
            if available_namespaces:
                namespaces = [validate_namespace(ns) for ns in available_namespaces]
                infos: List[FileInfo] = []
                if any(self._is_root_namespace(ns) for ns in namespaces):
                    infos.extend(self.driver.list_files())
                infos.extend(self.driver.list_files_under_namespaces(
                    [ns for ns in namespaces if not self._is_root_namespace(ns)]
                ))
            else:
                infos = [i for i in self.driver.list_files() if '/' not in self._relative(i.path)]

        items = [self._to_item(info) for info in infos]

        if query.search:
            needle = query.search.lower()
            items = [
                item for item in items
                if needle in item.name.lower()
                or needle in item.display_name.lower()
                or needle in (item.schema_type or '').lower()
            ]
        if query.schema_type:
            items = [item for item in items if item.schema_type == query.schema_type]

        start = (query.page - 1) * query.limit
        return items[start:start + query.limit]

    # ------------------------------------------------------------------
    # Single documents
    # ------------------------------------------------------------------

    def _document(self, relative_path: str, content: FileContent) -> Document:
        return Document(
            name=relative_path.split('/')[-1],
            path=relative_path,
            revision_id=content.revision_id,
            content=content.content,
            frontmatter=dict(content.frontmatter),
            namespace=self._namespace_of(relative_path),
        )

    def get_file(self, filename: str, namespace: Optional[str] = None) -> Document:
        relative = self.namespaced_path(filename, namespace)
        with self._operation('read', filename):
            content = self.driver.get_file(self._repo_path(relative))
        return self._document(relative, content)

    def get_file_at_revision(
        self,
        filename: str,
        revision_id: str,
        namespace: Optional[str] = None,
    ) -> Document:
        if not revision_id:
            raise ValidationError("revision_id is required")
        relative = self.namespaced_path(filename, namespace)
        with self._operation('read', filename):
            content = self.driver.get_file_at_revision(self._repo_path(relative), revision_id)
        return self._document(relative, content)

    def create_file(
        self,
        filename: str,
        content: str,
        frontmatter: Optional[Dict[str, Any]] = None,
        namespace: Optional[str] = None,
    ) -> WriteResult:
        relative = self.namespaced_path(filename, namespace)
        with self._operation('create', filename):
            result = self.driver.create_file(self._repo_path(relative), frontmatter or {}, content)
        logger.info(f"Created {relative}")
        return WriteResult(path=relative, revision_id=result.revision_id, commit_id=result.commit_id)

    def update_file(
        self,
        filename: str,
        content: str,
        frontmatter: Optional[Dict[str, Any]] = None,
        namespace: Optional[str] = None,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        """
        Replace a document.

        Without ``revision_id`` the current revision is read first, which
        gives up the optimistic-concurrency check. Without ``frontmatter``
        the existing frontmatter is kept.
        """
        relative = self.namespaced_path(filename, namespace)
        repo_path = self._repo_path(relative)
        with self._operation('update', filename):
            if revision_id is None or frontmatter is None:
                current = self.driver.get_file(repo_path)
                revision_id = revision_id or current.revision_id
                if frontmatter is None:
                    frontmatter = dict(current.frontmatter)
            result = self.driver.update_file(repo_path, frontmatter, content, revision_id)
        logger.info(f"Updated {relative}")
        return WriteResult(path=relative, revision_id=result.revision_id, commit_id=result.commit_id)

    def delete_file(
        self,
        filename: str,
        namespace: Optional[str] = None,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        relative = self.namespaced_path(filename, namespace)
        repo_path = self._repo_path(relative)
        with self._operation('delete', filename):
            if revision_id is None:
                revision_id = self.driver.get_file(repo_path).revision_id
            result = self.driver.delete_file(repo_path, revision_id)
        logger.info(f"Deleted {relative}")
        return WriteResult(path=relative, revision_id=None, commit_id=result.commit_id)

    def _exists(self, repo_path: str) -> bool:
        try:
            self.driver.get_file(repo_path)
        except GitProviderError as e:
            if e.is_not_found:
                return False
            raise
        return True

    def move_file(
        self,
        filename: str,
        new_filename: str,
        namespace: Optional[str] = None,
        target_namespace: Optional[str] = None,
    ) -> MoveResult:
        """
        Rename a document, within or across namespaces.

        Creates the document at the target (providers create missing
        directories) and then deletes the source at the revision that
        was copied. The returned revision id is the new file's.

        Raises:
            NotFoundError: The source does not exist
            ConflictError: The target already exists
        """
        if target_namespace is None:
            target_namespace = namespace
        old_relative = self.namespaced_path(filename, namespace)
        new_relative = self.namespaced_path(new_filename, target_namespace)
        if old_relative == new_relative:
            raise ValidationError("Source and target are the same file", {'path': old_relative})

        old_path = self._repo_path(old_relative)
        new_path = self._repo_path(new_relative)

        with self._operation('move', filename):
            source = self.driver.get_file(old_path)
            if self._exists(new_path):
                raise ConflictError(
                    f"Target file '{new_relative}' already exists",
                    {'operation': 'move', 'filename': filename},
                )
            created = self.driver.create_file(new_path, dict(source.frontmatter), source.content)
            try:
                self.driver.delete_file(old_path, source.revision_id)
            except GitCmsError as e:
                logger.error(f"Moved {old_relative} to {new_relative} but could not delete the source: {e.message}")
                raise

        logger.info(f"Moved {old_relative} to {new_relative}")
        return MoveResult(
            old_path=old_relative,
            new_path=new_relative,
            revision_id=created.revision_id,
            commit_id=created.commit_id,
        )

    def get_history(
        self,
        filename: str,
        limit: int = 20,
        namespace: Optional[str] = None,
    ) -> List[RevisionHistoryEntry]:
        if limit < 1:
            raise ValidationError("limit must be positive", {'limit': limit})
        relative = self.namespaced_path(filename, namespace)
        with self._operation('history', filename):
            revisions = self.driver.list_revisions(self._repo_path(relative))
        return revisions[:limit]

    def check_access(self, namespace: str, context: NamespaceContext) -> None:
        """
        Raises:
            NamespaceError: If ``context`` may not reach ``namespace``
        """
        if not self.resolver.is_accessible(namespace, context):
            raise NamespaceError(namespace, f"Access denied for user '{context.user_id}'")
