"""
Git-backed schema/template repository for gitcms.

Keeps a local clone of a schema repository and serves schema and
template lookups from it, with a time-based in-memory cache.

Updates never modify the working copy in place. A pull clones a fresh
copy next to it and swaps directories with two renames:

    <repo>            current working copy
    <repo>-update-N   fresh clone, renamed to <repo>
    <repo>-backup     previous copy, removed after a grace period

so a reader always sees the old tree, the new tree, or (between the two
renames) no tree, in which case it falls back to the next source.

Lookups go local working copy, then remote API, then built-in defaults.
"""

import logging
import os
import shutil
import tempfile
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..domain import SchemaInfo, TemplateInfo, ValidationResult
from ..errors import GitCmsError
from ..infra import GitClient
from .schema_sources import DefaultSchemaSource, LocalSchemaSource, RemoteSchemaSource, SchemaCache
from .templates import render, split_template_id, validate_values

logger = logging.getLogger(__name__)

# Errors a non-final tier may raise before the next tier is tried
TIER_ERRORS = (GitCmsError, OSError, ValueError)


class RepositoryState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    CLONING = 'cloning'
    READY = 'ready'
    PULLING = 'pulling'
    DEGRADED = 'degraded'
    CLOSED = 'closed'


@dataclass(frozen=True)
class SchemaRepositoryConfig:
    """
    Schema repository settings.

    ``pull_interval``, ``cache_timeout``, ``clone_timeout`` and
    ``backup_grace`` are in seconds. ``work_dir`` defaults to the system
    temp directory.
    """
    enabled: bool = False
    repo_type: str = 'git'
    git_url: Optional[str] = None
    pull_interval: int = 300
    shallow_clone: bool = True
    auto_cleanup: bool = True
    cache_timeout: int = 300
    clone_timeout: int = 60
    backup_grace: float = 5.0
    work_dir: Optional[str] = None

    @property
    def git_mode(self) -> bool:
        return self.enabled and self.repo_type == 'git' and bool(self.git_url)


def _millis() -> int:
    return int(time.time() * 1000)


class GitSchemaRepository:
    """
    Schema and template lookups backed by a cloned Git repository.

    Use open() (or open_schema_repository()) to start the clone in the
    background; lookups made before the clone finishes are answered by
    the remote source or the defaults.

    Example:
        repo = GitSchemaRepository.open(SchemaRepositoryConfig(
            enabled=True, git_url="https://example.com/schemas.git"))
        repo.wait_until_ready(timeout=60)
        print(repo.render_template("user-story/basic", {"title": "Login"}))
        repo.destroy()
    """

    def __init__(
        self,
        config: SchemaRepositoryConfig,
        remote: Optional[RemoteSchemaSource] = None,
        git: Optional[GitClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the repository handle without touching the network.

        Args:
            config: Repository settings
            remote: Second-tier source read through a provider driver
            git: Git client (creates default if None)
            clock: Monotonic clock for cache expiry
        """
        self.config = config
        self.remote = remote
        self.defaults = DefaultSchemaSource()
        self.git = git or GitClient(timeout=config.clone_timeout)
        self.cache = SchemaCache(config.cache_timeout, clock)

        work_dir = config.work_dir or tempfile.gettempdir()
        self.repo_path = os.path.join(work_dir, f"schema-repo-{os.getpid()}-{_millis()}")
        self.backup_path = f"{self.repo_path}-backup"

        self._state = RepositoryState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._pull_lock = threading.Lock()
        self._settled = threading.Event()
        self._stop = threading.Event()
        self._init_thread: Optional[threading.Thread] = None
        self._pull_thread: Optional[threading.Thread] = None
        self._cleanup_timer: Optional[threading.Timer] = None

    @classmethod
    def open(
        cls,
        config: SchemaRepositoryConfig,
        remote: Optional[RemoteSchemaSource] = None,
        git: Optional[GitClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> 'GitSchemaRepository':
        """Create a repository and start cloning in the background."""
        repository = cls(config, remote=remote, git=git, clock=clock)
        repository.start()
        return repository

    def __enter__(self) -> 'GitSchemaRepository':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> RepositoryState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: RepositoryState) -> None:
        with self._state_lock:
            if self._state != RepositoryState.CLOSED:
                self._state = state

    def start(self) -> None:
        """Begin the initial clone on a daemon thread."""
        if not self.config.git_mode:
            logger.info("Git mode not enabled or URL not configured, using API mode")
            self._settled.set()
            return
        self._init_thread = threading.Thread(
            target=self.initialize, name='schema-repo-init', daemon=True
        )
        self._init_thread.start()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the initial clone has succeeded or failed.

        Returns:
            True if the working copy is usable
        """
        self._settled.wait(timeout)
        return self.state in (RepositoryState.READY, RepositoryState.PULLING)

    def initialize(self) -> bool:
        """
        Clone the working copy synchronously.

        Returns:
            True on success; on failure the repository is DEGRADED and
            lookups use the remaining sources
        """
        if not self.config.git_mode:
            self._settled.set()
            return False

        self._set_state(RepositoryState.CLONING)
        logger.info(f"Initializing Git-based schema repository at {self.repo_path}")
        try:
            cloned = self._clone(self.repo_path)
        except OSError as e:
            logger.error(f"Git repository initialization failed: {e}")
            cloned = False

        if cloned and self.state == RepositoryState.CLOSED:
            logger.info("Schema repository closed during clone; removing working copy")
            shutil.rmtree(self.repo_path, ignore_errors=True)
            self._settled.set()
            return False

        if cloned:
            valid, problem = self.validate_repository()
            if not valid:
                logger.warning(f"Cloned schema repository looks incomplete: {problem}")
            self._set_state(RepositoryState.READY)
            logger.info("Git-based schema repository initialized successfully")
            if self.config.pull_interval > 0:
                self._start_periodic_pull()
        else:
            self._set_state(RepositoryState.DEGRADED)
            logger.warning("Schema repository clone failed; falling back to API mode")

        self._settled.set()
        return cloned

    def _clone(self, dest: str) -> bool:
        depth = 1 if self.config.shallow_clone else None
        if self.git.clone(self.config.git_url, dest, depth=depth, timeout=self.config.clone_timeout):
            return True
        # A failed or timed-out clone may leave a partial directory behind
        shutil.rmtree(dest, ignore_errors=True)
        return False

    def _start_periodic_pull(self) -> None:
        if self._pull_thread is not None:
            return
        logger.info(f"Starting periodic repository updates every {self.config.pull_interval} seconds")
        self._pull_thread = threading.Thread(target=self._pull_loop, name='schema-repo-pull', daemon=True)
        self._pull_thread.start()

    def _pull_loop(self) -> None:
        while not self._stop.wait(self.config.pull_interval):
            self.refresh()

    def refresh(self) -> bool:
        """
        Pull once: clone a fresh copy and swap it in.

        Failures are logged and leave the current working copy and cache
        untouched.

        Returns:
            True if a new working copy is now current
        """
        if self.state != RepositoryState.READY:
            logger.debug(f"Skipping pull in state {self.state.value}")
            return False
        if not self._pull_lock.acquire(blocking=False):
            logger.debug("Pull already in progress")
            return False

        try:
            self._set_state(RepositoryState.PULLING)
            logger.info("Pulling latest changes from schema repository")
            update_path = f"{self.repo_path}-update-{_millis()}"
            try:
                if not self._clone(update_path):
                    return False
                if self.state == RepositoryState.CLOSED:
                    shutil.rmtree(update_path, ignore_errors=True)
                    return False
                self._swap(update_path)
            except OSError as e:
                logger.error(f"Failed to pull repository updates: {e}")
                shutil.rmtree(update_path, ignore_errors=True)
                return False

            self.cache.clear()
            logger.info("Repository updated successfully")
            self._schedule_backup_cleanup()
            return True
        finally:
            with self._state_lock:
                if self._state == RepositoryState.PULLING:
                    self._state = RepositoryState.READY
            self._pull_lock.release()

    def _swap(self, update_path: str) -> None:
        if os.path.exists(self.backup_path):
            shutil.rmtree(self.backup_path)

        backed_up = False
        if os.path.exists(self.repo_path):
            os.rename(self.repo_path, self.backup_path)
            backed_up = True
        try:
            os.rename(update_path, self.repo_path)
        except OSError:
            if backed_up:
                os.rename(self.backup_path, self.repo_path)
            raise

    def _schedule_backup_cleanup(self) -> None:
        if not self.config.auto_cleanup:
            return
        if self._cleanup_timer is not None:
            self._cleanup_timer.cancel()
        self._cleanup_timer = threading.Timer(self.config.backup_grace, self._remove_backup)
        self._cleanup_timer.daemon = True
        self._cleanup_timer.start()

    def _remove_backup(self) -> None:
        try:
            shutil.rmtree(self.backup_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to cleanup backup repository: {e}")

    def validate_repository(self) -> Tuple[bool, str]:
        """Check that the working copy has a schemas directory and a .git directory."""
        if not os.path.isdir(os.path.join(self.repo_path, 'schemas')):
            return False, 'Schemas directory not found in repository'
        if not self.git.is_git_repo(self.repo_path):
            return False, 'Not a valid git repository'
        return True, ''

    def destroy(self) -> None:
        """Stop background work and delete the working copy if auto-cleanup is on."""
        self._stop.set()
        with self._state_lock:
            self._state = RepositoryState.CLOSED
        if self._cleanup_timer is not None:
            self._cleanup_timer.cancel()
        # A clone in flight finishes (or times out) before the directories go
        for thread in (self._init_thread, self._pull_thread):
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout=self.config.clone_timeout)

        if self.config.auto_cleanup:
            for path in (self.repo_path, self.backup_path):
                shutil.rmtree(path, ignore_errors=True)
        self._settled.set()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _sources(self) -> List[Any]:
        sources: List[Any] = []
        if self.state in (RepositoryState.READY, RepositoryState.PULLING):
            sources.append(LocalSchemaSource(self.repo_path))
        if self.remote is not None:
            sources.append(self.remote)
        return sources

    def _lookup(self, what: str, read: Callable[[Any], Any]) -> Tuple[Any, bool]:
        """
        Run ``read`` against each tier in turn.

        Returns:
            Tuple of (result, cacheable); results from the built-in
            defaults are not cached
        """
        for source in self._sources():
            try:
                return read(source), True
            except TIER_ERRORS as e:
                logger.warning(f"Failed to load {what} from {source.name} source, falling back: {e}")
        return read(self.defaults), False

    def get_schemas(self) -> List[SchemaInfo]:
        cached = self.cache.schema_list()
        if cached is not None:
            return cached
        schemas, cacheable = self._lookup('schemas', lambda s: s.schemas())
        if cacheable:
            self.cache.put_schemas(schemas)
        return schemas

    def get_schema(self, schema_id: str) -> SchemaInfo:
        cached = self.cache.schema(schema_id)
        if cached is not None:
            return cached
        schema, cacheable = self._lookup(f"schema {schema_id}", lambda s: s.schema(schema_id))
        if cacheable:
            self.cache.put_schema(schema)
        return schema

    def get_templates(self, schema_type: Optional[str] = None) -> List[TemplateInfo]:
        cached = self.cache.templates(schema_type)
        if cached is not None:
            return cached
        templates, cacheable = self._lookup('templates', lambda s: s.templates(schema_type))
        if cacheable:
            self.cache.put_templates(schema_type, templates)
        return templates

    def get_template(self, template_id: str) -> TemplateInfo:
        split_template_id(template_id)
        cached = self.cache.template(template_id)
        if cached is not None:
            return cached
        template, _ = self._lookup(f"template {template_id}", lambda s: s.template(template_id))
        return template

    def render_template(self, template_id: str, values: Mapping[str, Any]) -> str:
        return render(self.get_template(template_id).content, values)

    def validate_template_values(self, template_id: str, values: Mapping[str, Any]) -> ValidationResult:
        template = self.get_template(template_id)
        schema = self.get_schema(template.schema_type)
        return validate_values(schema.fields, values)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def is_cache_valid(self) -> bool:
        return self.cache.is_valid()

    def get_cache_stats(self) -> Dict[str, Any]:
        stats = self.cache.stats()
        git_info = None
        if self.config.git_mode and os.path.exists(self.repo_path):
            git_info = {
                'repo_path': self.repo_path,
                'is_git_repo': self.git.is_git_repo(self.repo_path),
                'head_commit': self.git.head_commit(self.repo_path),
                'remote_url': self.git.remote_url(self.repo_path),
                'repo_type': self.config.repo_type,
                'pull_interval': self.config.pull_interval,
            }
        stats['state'] = self.state.value
        stats['git_info'] = git_info
        return stats


def open_schema_repository(
    config: SchemaRepositoryConfig,
    remote: Optional[RemoteSchemaSource] = None,
    git: Optional[GitClient] = None,
    clock: Callable[[], float] = time.monotonic,
) -> GitSchemaRepository:
    return GitSchemaRepository.open(config, remote=remote, git=git, clock=clock)
