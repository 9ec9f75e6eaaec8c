"""
Provider driver contract for gitcms.

One driver per Git hosting provider (GitHub, GitLab, Gitea) normalizes the
provider's REST API into the same eight operations:

- list_files / list_files_under_namespaces
- get_file / get_file_at_revision
- create_file / update_file / delete_file
- list_revisions

The base class owns the HTTP session, error wrapping and the parts of the
contract that are identical across providers. Subclasses supply the wire
format.
"""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from ..domain import (
    DirectoryEntry,
    FileContent,
    FileInfo,
    RevisionHistoryEntry,
    UpdateResult,
)
from ..errors import ConflictError, GitProviderError

logger = logging.getLogger(__name__)

# Providers return at most this many history entries per call
HISTORY_PAGE_SIZE = 20

DEFAULT_TIMEOUT = 30

MARKDOWN_SUFFIX = '.md'


class Platform(str, Enum):
    GITHUB = 'github'
    GITLAB = 'gitlab'
    GITEA = 'gitea'


@dataclass(frozen=True)
class ProviderConfig:
    """
    Connection settings for one remote repository.

    ``path`` is the directory inside the repository that holds documents
    ("" for the repository root). ``base_url`` overrides the provider's
    public host for self-hosted instances.
    """
    platform: str
    token: str
    owner: str
    repo: str
    path: str = ""
    base_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, with the token masked."""
        return {
            'platform': self.platform.value if isinstance(self.platform, Platform) else self.platform,
            'token': '***' if self.token else '',
            'owner': self.owner,
            'repo': self.repo,
            'path': self.path,
            'base_url': self.base_url,
        }


def join_path(*parts: str) -> str:
    """Join repository path segments, skipping empty ones."""
    return '/'.join(p.strip('/') for p in parts if p and p.strip('/'))


class ProviderDriver(ABC):
    """
    Base class for provider drivers.

    Example:
        driver = create_driver(ProviderConfig('github', token, 'me', 'docs'))
        for info in driver.list_files():
            doc = driver.get_file(info.path)
    """

    provider_name = 'Git'
    default_base_url = ''
    auth_scheme = 'token'

    def __init__(
        self,
        config: ProviderConfig,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the driver.

        Args:
            config: Provider connection settings
            timeout: Per-request timeout in seconds
            session: Optional pre-built requests session
        """
        self.config = config
        self.timeout = timeout
        self.base_url = (config.base_url or self.default_base_url).rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'gitcms',
        })
        if config.token:
            self.session.headers['Authorization'] = f'{self.auth_scheme} {config.token}'

    @property
    def root_path(self) -> str:
        """Directory that holds documents, without surrounding slashes."""
        return (self.config.path or '').strip('/')

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        conflict_check: bool = False,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Send one request and raise on any non-2xx response.

        Args:
            method: HTTP method
            url: Absolute URL
            conflict_check: Map the provider's conflict statuses to ConflictError
            **kwargs: Passed through to requests (params, json, ...)

        Raises:
            ConflictError: Write rejected because of a stale revision or existing path
            GitProviderError: Transport failure or any other non-2xx status
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GitProviderError(
                self.provider_name, f"{method} {url} failed: {e}", original_error=e
            ) from e

        status = response.status_code
        if 200 <= status < 300:
            return response

        message = self._error_message(response)
        if conflict_check and self._is_conflict(status, message):
            raise ConflictError(
                message or f"HTTP {status}",
                {'provider': self.provider_name, 'provider_status': status},
            )

        raise GitProviderError(
            self.provider_name,
            f"HTTP {status} for {method} {url}: {message}",
            provider_status=status,
        )

    def _is_conflict(self, status: int, message: str) -> bool:
        return status in (409, 422)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return str(getattr(response, 'text', '') or '')
        if isinstance(data, dict):
            return str(data.get('message') or data.get('error') or '')
        return ''

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GitProviderError(
                self.provider_name, f"Malformed JSON payload: {e}", original_error=e
            ) from e

    def _decode_base64(self, content: str) -> str:
        try:
            return base64.b64decode(content).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError, TypeError) as e:
            raise GitProviderError(
                self.provider_name, f"Malformed file content: {e}", original_error=e
            ) from e

    @staticmethod
    def _encode_base64(text: str) -> str:
        return base64.b64encode(text.encode('utf-8')).decode('ascii')

    def _require(self, data: Any, *keys: str) -> Tuple[Any, ...]:
        """Pull required keys out of a payload dict or raise GitProviderError."""
        if not isinstance(data, dict):
            raise GitProviderError(
                self.provider_name, f"Unexpected payload type {type(data).__name__}"
            )
        missing = [k for k in keys if k not in data]
        if missing:
            raise GitProviderError(
                self.provider_name, f"Payload missing fields: {', '.join(missing)}"
            )
        return tuple(data[k] for k in keys)

    # ------------------------------------------------------------------
    # Shared contract
    # ------------------------------------------------------------------

    @staticmethod
    def _markdown_files(entries: Iterable[DirectoryEntry]) -> List[FileInfo]:
        return [
            FileInfo(name=e.name, path=e.path, revision_id=e.revision_id)
            for e in entries
            if e.is_file and e.name.endswith(MARKDOWN_SUFFIX)
        ]

    def list_files(self) -> List[FileInfo]:
        """List markdown files directly under the configured root path."""
        return self._markdown_files(self.list_entries(self.root_path))

    def list_files_under_namespaces(self, namespaces: Iterable[str]) -> List[FileInfo]:
        """
        List markdown files in each namespace directory.

        A namespace without a directory yet contributes no files; every
        other failure propagates.
        """
        files: List[FileInfo] = []
        for namespace in namespaces:
            directory = join_path(self.root_path, namespace)
            try:
                entries = self.list_entries(directory)
            except GitProviderError as e:
                if e.is_not_found:
                    logger.debug(f"Namespace {namespace} not found, skipping")
                    continue
                raise
            files.extend(self._markdown_files(entries))
        return files

    # ------------------------------------------------------------------
    # Provider-specific operations
    # ------------------------------------------------------------------

    @abstractmethod
    def list_entries(self, path: str) -> List[DirectoryEntry]:
        """List files and directories directly under ``path``."""

    @abstractmethod
    def get_file(self, path: str) -> FileContent:
        """Fetch and decode a document at HEAD."""

    @abstractmethod
    def get_file_at_revision(self, path: str, revision_id: str) -> FileContent:
        """Fetch and decode a document at a historical commit."""

    @abstractmethod
    def create_file(self, path: str, frontmatter: Dict[str, Any], content: str) -> UpdateResult:
        """Create a new document; ConflictError if it already exists."""

    @abstractmethod
    def update_file(
        self,
        path: str,
        frontmatter: Dict[str, Any],
        content: str,
        current_revision_id: str,
    ) -> UpdateResult:
        """Replace a document; ConflictError if ``current_revision_id`` is stale."""

    @abstractmethod
    def delete_file(self, path: str, current_revision_id: str) -> UpdateResult:
        """Delete a document at a known revision."""

    @abstractmethod
    def list_revisions(self, path: str) -> List[RevisionHistoryEntry]:
        """Commits touching ``path``, newest first, at most HISTORY_PAGE_SIZE."""
