"""
GitHub provider driver for gitcms.

Talks to the GitHub REST ``contents`` API:
- Listing: GET /repos/{owner}/{repo}/contents/{dir}
- Read: GET /repos/{owner}/{repo}/contents/{path}?ref=...
- Write: PUT the same URL with a base64 body (and ``sha`` to update)
- Delete: DELETE the same URL with ``sha``
- History: GET /repos/{owner}/{repo}/commits?path=...

Revision ids are blob SHAs; commit ids are commit SHAs.
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


class GitHubDriver(ProviderDriver):
    """Driver for github.com and GitHub Enterprise."""

    provider_name = 'GitHub'
    default_base_url = 'https://api.github.com'
    auth_scheme = 'token'

    def _repo_url(self) -> str:
        return f"{self.base_url}/repos/{self.config.owner}/{self.config.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self._repo_url()}/contents/{quote(path)}".rstrip('/')

    def list_entries(self, path: str) -> List[DirectoryEntry]:
        data = self._json(self._request('GET', self._contents_url(path)))
        if not isinstance(data, list):
            # GitHub answers with a single object when the path is a file
            return []

        entries = []
        for item in data:
            kind = item.get('type')
            if kind not in ('file', 'dir'):
                continue
            entries.append(DirectoryEntry(
                name=item.get('name', ''),
                path=item.get('path', ''),
                kind=kind,
                revision_id=item.get('sha', ''),
            ))
        return entries

    def _fetch(self, path: str, ref: Optional[str] = None) -> FileContent:
        params = {'ref': ref} if ref else None
        data = self._json(self._request('GET', self._contents_url(path), params=params))
        if isinstance(data, list) or (isinstance(data, dict) and data.get('type') != 'file'):
            raise GitProviderError(self.provider_name, f"'{path}' is not a file")

        content, sha = self._require(data, 'content', 'sha')
        raw = self._decode_base64(content)
        return fm_codec.parse_document(raw, revision_id=sha, path=path)

    def get_file(self, path: str) -> FileContent:
        return self._fetch(path)

    def get_file_at_revision(self, path: str, revision_id: str) -> FileContent:
        return self._fetch(path, ref=revision_id)

    def _write_result(self, data: Any) -> UpdateResult:
        content = data.get('content') if isinstance(data, dict) else None
        commit = data.get('commit') if isinstance(data, dict) else None
        if not isinstance(content, dict) or 'sha' not in content:
            raise GitProviderError(self.provider_name, "Write response missing content sha")
        return UpdateResult(
            success=True,
            revision_id=content['sha'],
            commit_id=commit.get('sha') if isinstance(commit, dict) else None,
        )

    def create_file(self, path: str, frontmatter: Dict[str, Any], content: str) -> UpdateResult:
        body = {
            'message': f"Create {path}",
            'content': self._encode_base64(fm_codec.encode(frontmatter, content)),
        }
        response = self._request('PUT', self._contents_url(path), conflict_check=True, json=body)
        logger.debug(f"Created {path} on GitHub")
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
        logger.debug(f"Updated {path} on GitHub")
        return self._write_result(self._json(response))

    def delete_file(self, path: str, current_revision_id: str) -> UpdateResult:
        body = {'message': f"Delete {path}", 'sha': current_revision_id}
        response = self._request('DELETE', self._contents_url(path), conflict_check=True, json=body)
        data = self._json(response)
        commit = data.get('commit') if isinstance(data, dict) else None
        return UpdateResult(
            success=True,
            commit_id=commit.get('sha') if isinstance(commit, dict) else None,
        )

    def list_revisions(self, path: str) -> List[RevisionHistoryEntry]:
        params = {'path': path, 'per_page': HISTORY_PAGE_SIZE}
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
