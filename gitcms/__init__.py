"""
gitcms - Markdown documents and schemas stored in Git repositories.

gitcms reads and writes frontmatter markdown documents on GitHub, GitLab
or Gitea through one driver contract, scopes them to per-user and
per-group namespaces, and serves schemas and templates from a cloned
Git repository with a cache and built-in fallbacks.

Quick Start:
    import gitcms

    # Uses ~/.gitcms/config.* and GITCMS_* environment variables
    cms = gitcms.create()

    # Or as a specific user
    cms = gitcms.create(identity={'sub': 'alice', 'groups': ['team-x']})

    # Documents
    for item in cms.list_files():
        print(item.path, item.schema_type)

    result = cms.create_file("login.user-story.md", "# Login", {"title": "Login"},
                             namespace="team-x")
    cms.update_file("login.user-story.md", "# Login v2", namespace="team-x",
                    revision_id=result.revision_id)

    # Schemas and templates
    for schema in cms.schemas.get_schemas():
        print(schema.id, [f.name for f in schema.fields])

    print(cms.schemas.render_template("user-story/basic", {"title": "Login"}))

    cms.close()

Domain Objects:
    Document - Frontmatter, content and revision of one file
    FileItem - Listing entry with schema type and namespace
    NamespaceContext - Which namespaces a caller may use
    SchemaInfo / TemplateInfo - Schema definitions and templates

Services:
    FileService - Document CRUD, move and history over a provider driver
    NamespaceResolver - Identity to namespaces, path safety
    GitSchemaRepository - Cached schemas with clone, pull and fallback

Drivers:
    GitHubDriver, GitLabDriver, GiteaDriver (see create_driver)
"""

__version__ = "0.1.0"

# High-level API
from .api import GitCms, create

# Domain objects
from .domain import (
    Document,
    FileItem,
    ListQuery,
    WriteResult,
    MoveResult,
    TemplateFileResult,
    RevisionHistoryEntry,
    NamespaceContext,
    SchemaInfo,
    SchemaField,
    TemplateInfo,
    ValidationResult,
)

# Errors
from .errors import (
    GitCmsError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    ConflictError,
    NamespaceError,
    GitProviderError,
    FileOperationError,
    SchemaRepositoryError,
)

# Drivers
from .infra import (
    ProviderConfig,
    ProviderDriver,
    GitHubDriver,
    GitLabDriver,
    GiteaDriver,
    create_driver,
)

# Services (for advanced use)
from .services import (
    FileService,
    NamespaceResolver,
    NamespaceSettings,
    GitSchemaRepository,
    SchemaRepositoryConfig,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "GitCms",
    "create",
    # Domain objects
    "Document",
    "FileItem",
    "ListQuery",
    "WriteResult",
    "MoveResult",
    "TemplateFileResult",
    "RevisionHistoryEntry",
    "NamespaceContext",
    "SchemaInfo",
    "SchemaField",
    "TemplateInfo",
    "ValidationResult",
    # Errors
    "GitCmsError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "NamespaceError",
    "GitProviderError",
    "FileOperationError",
    "SchemaRepositoryError",
    # Drivers
    "ProviderConfig",
    "ProviderDriver",
    "GitHubDriver",
    "GitLabDriver",
    "GiteaDriver",
    "create_driver",
    # Services
    "FileService",
    "NamespaceResolver",
    "NamespaceSettings",
    "GitSchemaRepository",
    "SchemaRepositoryConfig",
    # Configuration
    "load_config",
    "save_config",
]
