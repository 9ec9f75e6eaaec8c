"""
Error taxonomy for gitcms.

Every error raised past a component boundary is one of these classes.
Each carries a stable ``code``, the HTTP-ish ``status_code`` a web layer
would map it to, and a ``context`` dict with the fields needed to build a
structured error body (operation, filename, namespace, provider, ...).
"""

from typing import Any, Dict, Optional


class GitCmsError(Exception):
    """Base class for all gitcms errors."""

    status_code = 500
    code = 'INTERNAL_ERROR'
    is_operational = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable error body."""
        data = {
            'error': self.__class__.__name__,
            'code': self.code,
            'message': self.message,
            'status': self.status_code,
        }
        if self.context:
            data['context'] = {k: v for k, v in self.context.items() if v is not None}
        return data


class ConfigurationError(GitCmsError):
    """Bad or missing setup. Not recoverable at runtime; abort startup."""

    status_code = 500
    code = 'CONFIGURATION_ERROR'
    is_operational = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Configuration Error: {message}", context)


class ValidationError(GitCmsError):
    """Bad caller input."""

    status_code = 400
    code = 'VALIDATION_ERROR'
    is_operational = True

    def __init__(self, message: str, details: Any = None):
        super().__init__(f"Validation Error: {message}", {'details': details})
        self.details = details


class AuthenticationError(GitCmsError):
    status_code = 401
    code = 'AUTHENTICATION_ERROR'
    is_operational = True

    def __init__(self, message: str = 'Authentication failed', context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)


class NamespaceError(GitCmsError):
    """Caller tried to reach a namespace outside its context."""

    status_code = 403
    code = 'NAMESPACE_ERROR'
    is_operational = True

    def __init__(self, namespace: str, message: str):
        super().__init__(f"Namespace '{namespace}': {message}", {'namespace': namespace})
        self.namespace = namespace


class NotFoundError(GitCmsError):
    status_code = 404
    code = 'NOT_FOUND_ERROR'
    is_operational = True

    def __init__(self, resource: str, identifier: Optional[str] = None):
        if identifier:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, {'resource': resource, 'identifier': identifier})
        self.resource = resource
        self.identifier = identifier


class ConflictError(GitCmsError):
    """Concurrent mutation (stale revision id) or duplicate target."""

    status_code = 409
    code = 'CONFLICT_ERROR'
    is_operational = True

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Conflict: {message}", context)


class GitProviderError(GitCmsError):
    """
    Remote hosting API failure.

    ``provider_status`` holds the HTTP status returned by the provider, or
    None when the request never got a response (DNS, timeout, ...).
    """

    status_code = 502
    code = 'GIT_PROVIDER_ERROR'
    is_operational = True

    def __init__(
        self,
        provider: str,
        message: str,
        original_error: Optional[BaseException] = None,
        provider_status: Optional[int] = None,
    ):
        super().__init__(
            f"{provider} Error: {message}",
            {
                'provider': provider,
                'provider_status': provider_status,
                'original_error': str(original_error) if original_error else None,
            },
        )
        self.provider = provider
        self.original_error = original_error
        self.provider_status = provider_status

    @property
    def is_not_found(self) -> bool:
        return self.provider_status == 404


class FileOperationError(GitCmsError):
    """Generic wrapper for document CRUD failures."""

    status_code = 422
    code = 'FILE_OPERATION_ERROR'
    is_operational = True

    def __init__(
        self,
        operation: str,
        filename: str,
        message: str,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(
            f"File {operation} failed for '{filename}': {message}",
            {
                'operation': operation,
                'filename': filename,
                'original_error': str(original_error) if original_error else None,
            },
        )
        self.operation = operation
        self.filename = filename
        self.original_error = original_error


class SchemaRepositoryError(GitCmsError):
    status_code = 503
    code = 'SCHEMA_REPOSITORY_ERROR'
    is_operational = True

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(
            f"Schema Repository Error: {message}",
            {'original_error': str(original_error) if original_error else None},
        )
        self.original_error = original_error
