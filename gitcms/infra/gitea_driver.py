"""
Gitea provider driver for gitcms.

Gitea's v1 ``contents`` API mirrors GitHub's closely, with two
differences that matter here: files are created with POST (PUT only
updates), and history paging uses ``limit`` instead of ``per_page``.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .. import frontmatter as fm_codec
from ..domain import (
    DirectoryEntry,
    FileContent,
    RevisionAuthor,
    RevisionHistoryEntry,
    UpdateResult,
)
from ..errors import GitProviderError
from .provider_driver import HISTORY_PAGE_SIZE, ProviderDriver

logger = logging.getLogger(__name__)


class GiteaDriver(ProviderDriver):
    """Driver for gitea.com and self-hosted Gitea/Forgejo."""

    provider_name = 'Gitea'
    default_base_url = 'https://gitea.com'
    auth_scheme = 'token'

    def _repo_url(self) -> str:
        return f"{self.base_url}/api/v1/repos/{self.config.owner}/{self.config.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self._repo_url()}/contents/{quote(path)}".rstrip('/')

    def list_entries(self, path: str) -> List[DirectoryEntry]:
        data = self._json(self._request('GET', self._contents_url(path)))
        if not isinstance(data, list):
            return []
        return [
            DirectoryEntry(
                name=item.get('name', ''),
                path=item.get('path', ''),
                kind=item.get('type'),
                revision_id=item.get('sha', ''),
            )
            for item in data
            if item.get('type') in ('file', 'dir')
        ]

    def _fetch(self, path: str, ref: Optional[str] = None) -> FileContent:
        params = {'ref': ref} if ref else None
        data = self._json(self._request('GET', self._contents_url(path), params=params))
        if not isinstance(data, dict) or data.get('type') != 'file':
            raise GitProviderError(self.provider_name, f"'{path}' is not a file")

        content, sha = self._require(data, 'content', 'sha')
        return fm_codec.parse_document(self._decode_base64(content or ''), revision_id=sha, path=path)

    def get_file(self, path: str) -> FileContent:
        return self._fetch(path)

    def get_file_at_revision(self, path: str, revision_id: str) -> FileContent:
        return self._fetch(path, ref=revision_id)

    def _write_result(self, data: Any) -> UpdateResult:
        if not isinstance(data, dict):
            raise GitProviderError(self.provider_name, "Write response is not an object")
        content = data.get('content') or {}
        commit = data.get('commit') or {}
        if 'sha' not in content:
            raise GitProviderError(self.provider_name, "Write response missing content sha")
        return UpdateResult(success=True, revision_id=content['sha'], commit_id=commit.get('sha'))

    def create_file(self, path: str, frontmatter: Dict[str, Any], content: str) -> UpdateResult:
        body = {
            'message': f"Create {path}",
            'content': self._encode_base64(fm_codec.encode(frontmatter, content)),
        }
        response = self._request('POST', self._contents_url(path), conflict_check=True, json=body)
        logger.debug(f"Created {path} on Gitea")
        return self._write_result(self._json(response))

    def update_file(
        self,
        path: str,
        frontmatter: Dict[str, Any],
        content: str,
        current_revision_id: str,
    ) -> UpdateResult:
        body = {
            'message': f"Update {path}",
            'content': self._encode_base64(fm_codec.encode(frontmatter, content)),
            'sha': current_revision_id,
        }
        response = self._request('PUT', self._contents_url(path), conflict_check=True, json=body)
        logger.debug(f"Updated {path} on Gitea")
        return self._write_result(self._json(response))

    def delete_file(self, path: str, current_revision_id: str) -> UpdateResult:
        body = {'message': f"Delete {path}", 'sha': current_revision_id}
        response = self._request('DELETE', self._contents_url(path), conflict_check=True, json=body)
        data = self._json(response)
        commit = data.get('commit') if isinstance(data, dict) else None
        return UpdateResult(success=True, commit_id=(commit or {}).get('sha'))

    def list_revisions(self, path: str) -> List[RevisionHistoryEntry]:
        params = {'path': path, 'limit': HISTORY_PAGE_SIZE}
        data = self._json(self._request('GET', f"{self._repo_url()}/commits", params=params))
        if not isinstance(data, list):
            raise GitProviderError(self.provider_name, "Commit list is not an array")

        revisions = []
        for item in data:
            commit = item.get('commit') or {}
            author = commit.get('author') or {}
            sha = item.get('sha', '')
            revisions.append(RevisionHistoryEntry(
                revision_id=sha,
                short_id=sha[:7],
                message=commit.get('message', ''),
                author=RevisionAuthor(
                    name=author.get('name', ''),
                    email=author.get('email', ''),
                    date=author.get('date', ''),
                ),
                url=item.get('html_url', ''),
            ))
        return revisions
