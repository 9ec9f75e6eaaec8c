"""
GitLab provider driver for gitcms.

Uses REST v4 ``repository/tree`` for listings and ``repository/files``
for reads and writes, always on branch ``main``. Writes send plain text
with ``encoding: text``.

GitLab's write endpoints neither check nor return blob ids, so this
driver:
- compares the caller's revision id with the current ``blob_id`` before
  an update or delete and passes ``last_commit_id`` so GitLab itself
  rejects a writer that raced in between
- reads the new blob id back from the ``X-Gitlab-Blob-Id`` header of a
  HEAD request after every write
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from .. import frontmatter as fm_codec
from ..domain import (
    DirectoryEntry,
    FileContent,
    RevisionAuthor,
    RevisionHistoryEntry,
    UpdateResult,
)
from ..errors import ConflictError, GitProviderError
from .provider_driver import HISTORY_PAGE_SIZE, ProviderDriver

logger = logging.getLogger(__name__)

BRANCH = 'main'
TREE_PAGE_SIZE = 100

# Substrings of GitLab 400 messages that signal a write conflict
CONFLICT_MESSAGES = ('already exists', 'has changed since')


class GitLabDriver(ProviderDriver):
    """Driver for gitlab.com and self-managed GitLab."""

    provider_name = 'GitLab'
    default_base_url = 'https://gitlab.com'
    auth_scheme = 'Bearer'

    @property
    def project_id(self) -> str:
        """URL-encoded project id: ``owner/repo``, or ``owner`` alone for numeric ids."""
        project = f"{self.config.owner}/{self.config.repo}" if self.config.repo else self.config.owner
        return quote(str(project), safe='')

    def _project_url(self) -> str:
        return f"{self.base_url}/api/v4/projects/{self.project_id}"

    def _file_url(self, path: str) -> str:
        return f"{self._project_url()}/repository/files/{quote(path, safe='')}"

    def _is_conflict(self, status: int, message: str) -> bool:
        if status == 400:
            lowered = message.lower()
            return any(m in lowered for m in CONFLICT_MESSAGES)
        return super()._is_conflict(status, message)

    def list_entries(self, path: str) -> List[DirectoryEntry]:
        params: Dict[str, Any] = {'ref': BRANCH, 'per_page': TREE_PAGE_SIZE}
        if path:
            params['path'] = path
        data = self._json(self._request('GET', f"{self._project_url()}/repository/tree", params=params))
        if not isinstance(data, list):
            raise GitProviderError(self.provider_name, "Tree listing is not an array")

        kinds = {'blob': 'file', 'tree': 'dir'}
        return [
            DirectoryEntry(
                name=item.get('name', ''),
                path=item.get('path', ''),
                kind=kinds[item.get('type')],
                revision_id=item.get('id', ''),
            )
            for item in data
            if item.get('type') in kinds
        ]

    def _fetch(self, path: str, ref: str) -> FileContent:
        data = self._json(self._request('GET', self._file_url(path), params={'ref': ref}))
        content, blob_id = self._require(data, 'content', 'blob_id')
        return fm_codec.parse_document(self._decode_base64(content), revision_id=blob_id, path=path)

    def get_file(self, path: str) -> FileContent:
        return self._fetch(path, BRANCH)

    def get_file_at_revision(self, path: str, revision_id: str) -> FileContent:
        return self._fetch(path, revision_id)

    def _head(self, path: str) -> Tuple[str, Optional[str]]:
        """Return (blob_id, last_commit_id) of ``path`` on the branch."""
        response = self._request('HEAD', self._file_url(path), params={'ref': BRANCH})
        blob_id = response.headers.get('X-Gitlab-Blob-Id')
        if not blob_id:
            raise GitProviderError(self.provider_name, f"No blob id returned for '{path}'")
        return blob_id, response.headers.get('X-Gitlab-Last-Commit-Id')

    def _check_revision(self, path: str, current_revision_id: str) -> Optional[str]:
        blob_id, last_commit_id = self._head(path)
        if blob_id != current_revision_id:
            raise ConflictError(
                f"'{path}' has changed (expected revision {current_revision_id}, found {blob_id})",
                {'provider': self.provider_name, 'path': path},
            )
        return last_commit_id

    def _written(self, path: str) -> UpdateResult:
        blob_id, commit_id = self._head(path)
        return UpdateResult(success=True, revision_id=blob_id, commit_id=commit_id)

    def create_file(self, path: str, frontmatter: Dict[str, Any], content: str) -> UpdateResult:
        body = {
            'branch': BRANCH,
            'content': fm_codec.encode(frontmatter, content),
            'commit_message': f"Create {path}",
            'encoding': 'text',
        }
        self._request('POST', self._file_url(path), conflict_check=True, json=body)
        logger.debug(f"Created {path} on GitLab")
        return self._written(path)

    def update_file(
        self,
        path: str,
        frontmatter: Dict[str, Any],
        content: str,
        current_revision_id: str,
    ) -> UpdateResult:
        last_commit_id = self._check_revision(path, current_revision_id)
        body = {
            'branch': BRANCH,
            'content': fm_codec.encode(frontmatter, content),
            'commit_message': f"Update {path}",
            'encoding': 'text',
        }
        if last_commit_id:
            body['last_commit_id'] = last_commit_id
        self._request('PUT', self._file_url(path), conflict_check=True, json=body)
        logger.debug(f"Updated {path} on GitLab")
        return self._written(path)

    def delete_file(self, path: str, current_revision_id: str) -> UpdateResult:
        last_commit_id = self._check_revision(path, current_revision_id)
        body = {'branch': BRANCH, 'commit_message': f"Delete {path}"}
        if last_commit_id:
            body['last_commit_id'] = last_commit_id
        self._request('DELETE', self._file_url(path), conflict_check=True, json=body)

        # The delete endpoint answers 204; the newest commit on the path is the deletion
        latest = self._commits(path, per_page=1)
        return UpdateResult(success=True, commit_id=latest[0].get('id') if latest else None)

    def _commits(self, path: str, per_page: int) -> List[Dict[str, Any]]:
        params = {'path': path, 'ref_name': BRANCH, 'per_page': per_page}
        data = self._json(self._request('GET', f"{self._project_url()}/repository/commits", params=params))
        if not isinstance(data, list):
            raise GitProviderError(self.provider_name, "Commit list is not an array")
        return data

    def list_revisions(self, path: str) -> List[RevisionHistoryEntry]:
        return [
            RevisionHistoryEntry(
                revision_id=item.get('id', ''),
                short_id=item.get('short_id', ''),
                message=item.get('message', ''),
                author=RevisionAuthor(
                    name=item.get('author_name', ''),
                    email=item.get('author_email', ''),
                    date=item.get('authored_date', ''),
                ),
                url=item.get('web_url', ''),
            )
            for item in self._commits(path, per_page=HISTORY_PAGE_SIZE)
        ]
