"""
Service layer for gitcms.

Contains business logic that orchestrates domain objects and infrastructure:
- NamespaceResolver: identities to namespaces, path safety
- FileService: document CRUD, move and history over a provider driver
- GitSchemaRepository: schemas and templates from a cloned Git repository

Services are the primary API for commands to use.
"""

from .identity import IdentityProvider, AnonymousIdentityProvider, StaticIdentityProvider
from .namespace_service import (
    NamespaceSettings,
    NamespaceResolver,
    NamespacedPath,
    sanitize,
    validate_path,
    validate_namespace,
)
from .file_service import FileService
from .schema_sources import (
    LocalSchemaSource,
    RemoteSchemaSource,
    DefaultSchemaSource,
    SchemaCache,
)
from .schema_repository import (
    GitSchemaRepository,
    RepositoryState,
    SchemaRepositoryConfig,
    open_schema_repository,
)
from .templates import render, validate_values

__all__ = [
    'IdentityProvider',
    'AnonymousIdentityProvider',
    'StaticIdentityProvider',
    'NamespaceSettings',
    'NamespaceResolver',
    'NamespacedPath',
    'sanitize',
    'validate_path',
    'validate_namespace',
    'FileService',
    'LocalSchemaSource',
    'RemoteSchemaSource',
    'DefaultSchemaSource',
    'SchemaCache',
    'GitSchemaRepository',
    'RepositoryState',
    'SchemaRepositoryConfig',
    'open_schema_repository',
    'render',
    'validate_values',
]
