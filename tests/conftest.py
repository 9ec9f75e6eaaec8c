"""
Shared fixtures for gitcms tests.

InMemoryDriver implements the provider driver contract over a dict so
service-level tests run without HTTP. It behaves like the real
providers where the services care: blob-hash revisions, 404 errors for
missing paths and directories, ConflictError on stale revisions.
"""

import hashlib
import threading
from typing import Any, Dict, List, Tuple

import pytest

from gitcms import frontmatter as fm_codec
from gitcms.domain import (
    DirectoryEntry,
    FileContent,
    RevisionAuthor,
    RevisionHistoryEntry,
    UpdateResult,
)
from gitcms.errors import ConflictError, GitProviderError
from gitcms.infra import ProviderConfig, ProviderDriver
from gitcms.infra.provider_driver import HISTORY_PAGE_SIZE


def blob_hash(raw: str) -> str:
    return hashlib.sha1(raw.encode('utf-8')).hexdigest()


class InMemoryDriver(ProviderDriver):
    """Provider driver backed by a dict of path -> raw document."""

    provider_name = 'Memory'

    def __init__(self, path: str = ''):
        super().__init__(ProviderConfig('memory', '', 'owner', 'repo', path=path))
        self.files: Dict[str, str] = {}
        self.snapshots: Dict[Tuple[str, str], str] = {}
        self.history: Dict[str, List[RevisionHistoryEntry]] = {}
        self.calls: List[Tuple[str, str]] = []
        self._commit_count = 0
        self._lock = threading.Lock()

    def _not_found(self, path: str) -> GitProviderError:
        return GitProviderError(self.provider_name, f"Not Found: {path}", provider_status=404)

    def _commit(self, path: str, message: str, raw: str = None) -> str:
        self._commit_count += 1
        commit_id = blob_hash(f"commit-{self._commit_count}")
        if raw is not None:
            self.snapshots[(path, commit_id)] = raw
        entry = RevisionHistoryEntry(
            revision_id=commit_id,
            short_id=commit_id[:7],
            message=message,
            author=RevisionAuthor('Test User', 'test@example.com', f"2024-01-{self._commit_count:02d}T00:00:00Z"),
            url=f"https://example.com/commit/{commit_id}",
        )
        self.history.setdefault(path, []).insert(0, entry)
        return commit_id

    def seed(self, path: str, frontmatter: Dict[str, Any] = None, content: str = '') -> str:
        """Put a document in place directly; returns its revision id."""
        raw = fm_codec.encode(frontmatter, content) if frontmatter else content
        self.files[path] = raw
        self._commit(path, f"Seed {path}", raw)
        return blob_hash(raw)

    def list_entries(self, path: str) -> List[DirectoryEntry]:
        self.calls.append(('list_entries', path))
        prefix = f"{path}/" if path else ''
        children: Dict[str, DirectoryEntry] = {}
        for file_path, raw in self.files.items():
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            head, sep, _ = rest.partition('/')
            if sep:
                children.setdefault(head, DirectoryEntry(head, prefix + head, 'dir'))
            else:
                children[head] = DirectoryEntry(head, file_path, 'file', blob_hash(raw))
        if path and not children:
            raise self._not_found(path)
        return sorted(children.values(), key=lambda e: e.name)

    def get_file(self, path: str) -> FileContent:
        self.calls.append(('get_file', path))
        if path not in self.files:
            raise self._not_found(path)
        raw = self.files[path]
        return fm_codec.parse_document(raw, revision_id=blob_hash(raw), path=path)

    def get_file_at_revision(self, path: str, revision_id: str) -> FileContent:
        self.calls.append(('get_file_at_revision', path))
        raw = self.snapshots.get((path, revision_id))
        if raw is None:
            raise self._not_found(path)
        return fm_codec.parse_document(raw, revision_id=blob_hash(raw), path=path)

    def create_file(self, path: str, frontmatter: Dict[str, Any], content: str) -> UpdateResult:
        self.calls.append(('create_file', path))
        raw = fm_codec.encode(frontmatter, content)
        with self._lock:
            if path in self.files:
                raise ConflictError(f"'{path}' already exists", {'provider': self.provider_name})
            self.files[path] = raw
            commit_id = self._commit(path, f"Create {path}", raw)
        return UpdateResult(success=True, revision_id=blob_hash(raw), commit_id=commit_id)

    def update_file(
        self,
        path: str,
        frontmatter: Dict[str, Any],
        content: str,
        current_revision_id: str,
    ) -> UpdateResult:
        self.calls.append(('update_file', path))
        raw = fm_codec.encode(frontmatter, content)
        with self._lock:
            if path not in self.files:
                raise self._not_found(path)
            if blob_hash(self.files[path]) != current_revision_id:
                raise ConflictError(f"'{path}' does not match {current_revision_id}", {'provider': self.provider_name})
            self.files[path] = raw
            commit_id = self._commit(path, f"Update {path}", raw)
        return UpdateResult(success=True, revision_id=blob_hash(raw), commit_id=commit_id)

    def delete_file(self, path: str, current_revision_id: str) -> UpdateResult:
        self.calls.append(('delete_file', path))
        with self._lock:
            if path not in self.files:
                raise self._not_found(path)
            if blob_hash(self.files[path]) != current_revision_id:
                raise ConflictError(f"'{path}' does not match {current_revision_id}", {'provider': self.provider_name})
            del self.files[path]
            commit_id = self._commit(path, f"Delete {path}")
        return UpdateResult(success=True, commit_id=commit_id)

    def list_revisions(self, path: str) -> List[RevisionHistoryEntry]:
        self.calls.append(('list_revisions', path))
        if path not in self.history:
            raise self._not_found(path)
        return self.history[path][:HISTORY_PAGE_SIZE]


@pytest.fixture
def driver():
    return InMemoryDriver()


@pytest.fixture
def test_config(tmp_path):
    """A full config with namespaces on and the schema repo off."""
    return {
        'provider': {
            'platform': 'github',
            'token': 'test-token',
            'owner': 'owner',
            'repo': 'docs',
            'path': '',
            'base_url': '',
            'timeout': 30,
        },
        'namespace': {
            'enabled': True,
            'user_claim': 'sub',
            'groups_claim': 'groups',
            'default_namespace': 'shared',
        },
        'schema_repo': {
            'enabled': False,
            'type': 'git',
            'url': '',
            'pull_interval': 300,
            'shallow_clone': True,
            'auto_cleanup': True,
            'cache_timeout': 300,
            'clone_timeout': 5,
            'backup_grace': 0,
            'work_dir': str(tmp_path),
            'git': {'platform': '', 'token': '', 'owner': '', 'repo': '', 'path': '', 'base_url': ''},
        },
        'logging': {'level': 'INFO'},
    }
