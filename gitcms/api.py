"""
High-level Python API for gitcms.

Wires configuration, provider drivers, the namespace resolver, the file
service and the schema repository together once, and exposes the
document and schema operations with namespace access checks applied.

Example:
    import gitcms

    # Uses ~/.gitcms/config.* and GITCMS_* environment variables
    cms = gitcms.create()

    # Or with an explicit config and identity
    cms = gitcms.create(
        config=my_config,
        identity={'sub': 'alice', 'groups': ['team-x']},
    )

    for item in cms.list_files():
        print(item.path, item.schema_type)

    result = cms.create_file("foo.bar.md", "# Hi", namespace="team-x")
    doc = cms.get_file("foo.bar.md", namespace="team-x")

    print(cms.schemas.render_template("user-story/basic", {"title": "Login"}))

    cms.close()
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .config import (
    load_config,
    namespace_settings_from,
    provider_config_from,
    schema_provider_config_from,
    schema_repository_config_from,
)
from .domain import (
    Document,
    FileItem,
    ListQuery,
    MoveResult,
    NamespaceContext,
    RevisionHistoryEntry,
    TemplateFileResult,
    WriteResult,
)
from .errors import ValidationError
from .infra import ProviderDriver, create_driver
from .services import (
    AnonymousIdentityProvider,
    FileService,
    GitSchemaRepository,
    IdentityProvider,
    NamespaceResolver,
    RemoteSchemaSource,
    StaticIdentityProvider,
)

logger = logging.getLogger(__name__)


class GitCms:
    """
    High-level API for gitcms.

    Services are built on first use, so commands that only need schemas
    work without document-provider credentials and vice versa.

    Example:
        with GitCms(config=config) as cms:
            for item in cms.list_files():
                print(item.display_name)
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        identity_provider: Optional[IdentityProvider] = None,
        driver: Optional[ProviderDriver] = None,
        schema_repository: Optional[GitSchemaRepository] = None,
    ):
        """
        Initialize GitCms.

        Args:
            config: Full config dict (loads from file if None)
            config_path: Path to config file (default: ~/.gitcms/config.json)
            identity_provider: Source of the caller's identity (anonymous if None)
            driver: Provider driver for documents (built from config if None)
            schema_repository: Schema repository (opened from config if None)
        """
        self._config = config if config is not None else load_config(config_path)
        self._identity_provider = identity_provider or AnonymousIdentityProvider()
        self._resolver = NamespaceResolver(namespace_settings_from(self._config))
        self._driver = driver
        self._file_service: Optional[FileService] = None
        self._schema_repository = schema_repository

    def __enter__(self) -> 'GitCms':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def config(self) -> Dict[str, Any]:
        """Access the configuration."""
        return self._config

    @property
    def resolver(self) -> NamespaceResolver:
        return self._resolver

    @property
    def driver(self) -> ProviderDriver:
        """Document provider driver, built from the [provider] section on first use."""
        if self._driver is None:
            timeout = int(self._config.get('provider', {}).get('timeout', 30))
            self._driver = create_driver(provider_config_from(self._config), timeout=timeout)
        return self._driver

    @property
    def file_service(self) -> FileService:
        """Access the underlying FileService."""
        if self._file_service is None:
            self._file_service = FileService(self.driver, self._resolver)
        return self._file_service

    @property
    def schemas(self) -> GitSchemaRepository:
        """Schema repository, opened (clone started) on first use."""
        if self._schema_repository is None:
            remote_config = schema_provider_config_from(self._config)
            remote = RemoteSchemaSource(create_driver(remote_config)) if remote_config else None
            self._schema_repository = GitSchemaRepository.open(
                schema_repository_config_from(self._config), remote=remote
            )
        return self._schema_repository

    def close(self) -> None:
        """Stop background schema pulls and remove the working copy."""
        if self._schema_repository is not None:
            self._schema_repository.destroy()

    # =========================================================================
    # NAMESPACES
    # =========================================================================

    def context(self) -> NamespaceContext:
        """Namespace context of the current caller."""
        return self._resolver.resolve_current(self._identity_provider)

    def _authorize(self, filename: str, namespace: Optional[str] = None) -> None:
        """
        Check access to the namespace ``filename`` lands in.

        The check runs on the resolved path, so a filename carrying its own
        namespace prefix (e.g. 'bob/notes.md') is checked against that prefix.

        Raises:
            NamespaceError: If the caller may not reach that namespace
            ValidationError: If the filename or namespace is unsafe
        """
        if not self._resolver.is_enabled():
            return
        path = self.file_service.namespaced_path(filename, namespace)
        target = self._resolver.from_path(path).namespace
        if target != self._resolver.default_namespace:
            self.file_service.check_access(target, self.context())

    # =========================================================================
    # DOCUMENTS
    # =========================================================================

    def list_files(self, query: Optional[ListQuery] = None) -> List[FileItem]:
        """
        List documents the current caller can see.

        Anonymous callers (or namespaces disabled) see root-level files only.
        """
        context = self.context()
        available = None
        if self._resolver.is_enabled() and not context.is_anonymous:
            available = context.available_namespaces
        return self.file_service.list_files(query, available_namespaces=available)

    def get_file(self, filename: str, namespace: Optional[str] = None) -> Document:
        self._authorize(filename, namespace)
        return self.file_service.get_file(filename, namespace)

    def get_file_at_revision(self, filename: str, revision_id: str, namespace: Optional[str] = None) -> Document:
        self._authorize(filename, namespace)
        return self.file_service.get_file_at_revision(filename, revision_id, namespace)

    def create_file(
        self,
        filename: str,
        content: str,
        frontmatter: Optional[Dict[str, Any]] = None,
        namespace: Optional[str] = None,
    ) -> WriteResult:
        self._authorize(filename, namespace)
        return self.file_service.create_file(filename, content, frontmatter, namespace)

    def update_file(
        self,
        filename: str,
        content: str,
        frontmatter: Optional[Dict[str, Any]] = None,
        namespace: Optional[str] = None,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        self._authorize(filename, namespace)
        return self.file_service.update_file(filename, content, frontmatter, namespace, revision_id)

    def delete_file(
        self,
        filename: str,
        namespace: Optional[str] = None,
        revision_id: Optional[str] = None,
    ) -> WriteResult:
        self._authorize(filename, namespace)
        return self.file_service.delete_file(filename, namespace, revision_id)

    def move_file(
        self,
        filename: str,
        new_filename: str,
        namespace: Optional[str] = None,
        target_namespace: Optional[str] = None,
    ) -> MoveResult:
        self._authorize(filename, namespace)
        self._authorize(new_filename, namespace if target_namespace is None else target_namespace)
        return self.file_service.move_file(filename, new_filename, namespace, target_namespace)

    def get_history(
        self,
        filename: str,
        limit: int = 20,
        namespace: Optional[str] = None,
    ) -> List[RevisionHistoryEntry]:
        self._authorize(filename, namespace)
        return self.file_service.get_history(filename, limit, namespace)

    def create_from_template(
        self,
        template_id: str,
        filename: str,
        values: Mapping[str, Any],
        namespace: Optional[str] = None,
    ) -> TemplateFileResult:
        """
        Render a template and store the result as a new document.

        Args:
            template_id: Template id, e.g. 'user-story/basic'
            filename: Name of the new document
            values: Template values, checked against the template's schema
            namespace: Target namespace (repository root if None)

        Raises:
            ValidationError: If the values fail the schema or the file exists
            NotFoundError: If the template or its schema is unknown
        """
        self._authorize(filename, namespace)
        validation = self.schemas.validate_template_values(template_id, values)
        if not validation.valid:
            raise ValidationError(
                f"Template validation failed: {', '.join(validation.errors)}",
                list(validation.errors),
            )

        content = self.schemas.render_template(template_id, values)
        result = self.file_service.create_file(filename, content, None, namespace)
        logger.info(f"Created {result.path} from template {template_id}")
        return TemplateFileResult(
            path=result.path,
            revision_id=result.revision_id,
            content=content,
            commit_id=result.commit_id,
        )


# Convenience function for quick access
def create(
    config: Optional[Dict[str, Any]] = None,
    identity: Optional[Mapping[str, Any]] = None,
    **kwargs
) -> GitCms:
    """
    Create a GitCms instance.

    Args:
        config: Full config dict (loads from file if None)
        identity: Fixed identity claims, e.g. {'sub': 'alice', 'groups': [...]}
        **kwargs: Additional arguments passed to GitCms

    Returns:
        Configured GitCms instance
    """
    if identity is not None:
        kwargs.setdefault('identity_provider', StaticIdentityProvider(identity))
    return GitCms(config=config, **kwargs)
