"""
Schema and template sources for gitcms.

The schema repository reads through three tiers, in order:

1. LocalSchemaSource: the cloned working copy on disk
2. RemoteSchemaSource: the same layout read through a ProviderDriver
3. DefaultSchemaSource: a small built-in set that is always available

Each source exposes schemas(), schema(id), templates(schema_type) and
template(id), and raises when it cannot answer. The repository moves on
to the next tier; only the last tier's errors reach callers.

Repository layout, relative to the source root::

    schemas/<id>.json
    templates/<schema_type>/<name>.md
"""

import json
import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .. import frontmatter as fm_codec
from ..domain import SchemaField, SchemaInfo, TemplateInfo
from ..errors import GitProviderError, NotFoundError, SchemaRepositoryError
from ..infra import ProviderDriver, join_path
from .namespace_service import validate_namespace
from .templates import TEMPLATE_SUFFIX, build_template, split_template_id

logger = logging.getLogger(__name__)

SCHEMAS_DIR = 'schemas'
TEMPLATES_DIR = 'templates'
SCHEMA_SUFFIX = '.json'


def _schema_id(name: str) -> str:
    return name[:-len(SCHEMA_SUFFIX)]


def _parse_schema(schema_id: str, raw: str) -> SchemaInfo:
    try:
        document = json.loads(raw)
    except ValueError as e:
        raise SchemaRepositoryError(f"Failed to parse schema {schema_id}: {e}", e) from e
    if not isinstance(document, dict):
        raise SchemaRepositoryError(f"Schema {schema_id} is not a JSON object")
    return SchemaInfo.from_document(schema_id, document)


class LocalSchemaSource:
    """Reads a working copy on the local filesystem."""

    name = 'local'

    def __init__(self, root: str):
        self.root = Path(root)

    def schemas(self) -> List[SchemaInfo]:
        schemas_dir = self.root / SCHEMAS_DIR
        if not schemas_dir.is_dir():
            raise SchemaRepositoryError(f"Schemas directory not found in {self.root}")

        schemas = []
        for path in sorted(schemas_dir.glob(f"*{SCHEMA_SUFFIX}")):
            try:
                schemas.append(_parse_schema(_schema_id(path.name), path.read_text(encoding='utf-8')))
            except (OSError, SchemaRepositoryError) as e:
                logger.warning(f"Skipping schema file {path.name}: {e}")
        return schemas

    def schema(self, schema_id: str) -> SchemaInfo:
        validate_namespace(schema_id)
        path = self.root / SCHEMAS_DIR / f"{schema_id}{SCHEMA_SUFFIX}"
        if not path.is_file():
            raise NotFoundError('Schema', schema_id)
        return _parse_schema(schema_id, path.read_text(encoding='utf-8'))

    def _load_template(self, schema_type: str, path: Path) -> Optional[TemplateInfo]:
        try:
            frontmatter, content = fm_codec.decode(path.read_text(encoding='utf-8'))
        except OSError as e:
            logger.warning(f"Failed to read template {path}: {e}")
            return None
        template = build_template(schema_type, path.name, frontmatter, content)
        if template is None:
            logger.warning(f"Template {path.name} does not have valid frontmatter")
        return template

    def templates(self, schema_type: Optional[str] = None) -> List[TemplateInfo]:
        templates_dir = self.root / TEMPLATES_DIR
        if not templates_dir.is_dir():
            return []

        if schema_type:
            validate_namespace(schema_type)
            type_dirs = [templates_dir / schema_type]
        else:
            type_dirs = sorted(p for p in templates_dir.iterdir() if p.is_dir())

        templates = []
        for type_dir in type_dirs:
            if not type_dir.is_dir():
                continue
            for path in sorted(type_dir.glob(f"*{TEMPLATE_SUFFIX}")):
                template = self._load_template(type_dir.name, path)
                if template:
                    templates.append(template)
        return templates

    def template(self, template_id: str) -> TemplateInfo:
        schema_type, file_name = split_template_id(template_id)
        path = self.root / TEMPLATES_DIR / schema_type / file_name
        template = self._load_template(schema_type, path) if path.is_file() else None
        if template is None:
            raise NotFoundError('Template', template_id)
        return template


class RemoteSchemaSource:
    """
    Reads the schema layout through a provider driver.

    Paths are relative to the driver's root path.
    """

    name = 'remote'

    def __init__(self, driver: ProviderDriver):
        self.driver = driver

    def _path(self, *parts: str) -> str:
        return join_path(self.driver.root_path, *parts)

    def schemas(self) -> List[SchemaInfo]:
        schemas = []
        for entry in self.driver.list_entries(self._path(SCHEMAS_DIR)):
            if not (entry.is_file and entry.name.endswith(SCHEMA_SUFFIX)):
                continue
            try:
                raw = self.driver.get_file(entry.path).content
                schemas.append(_parse_schema(_schema_id(entry.name), raw))
            except (GitProviderError, SchemaRepositoryError) as e:
                logger.warning(f"Skipping remote schema {entry.path}: {e}")
        return schemas

    def schema(self, schema_id: str) -> SchemaInfo:
        validate_namespace(schema_id)
        path = self._path(SCHEMAS_DIR, f"{schema_id}{SCHEMA_SUFFIX}")
        try:
            raw = self.driver.get_file(path).content
        except GitProviderError as e:
            if e.is_not_found:
                raise NotFoundError('Schema', schema_id) from e
            raise
        return _parse_schema(schema_id, raw)

    def _type_templates(self, schema_type: str) -> List[TemplateInfo]:
        try:
            entries = self.driver.list_entries(self._path(TEMPLATES_DIR, schema_type))
        except GitProviderError as e:
            if e.is_not_found:
                return []
            raise

        templates = []
        for entry in entries:
            if not (entry.is_file and entry.name.endswith(TEMPLATE_SUFFIX)):
                continue
            document = self.driver.get_file(entry.path)
            template = build_template(schema_type, entry.name, document.frontmatter, document.content)
            if template:
                templates.append(template)
        return templates

    def templates(self, schema_type: Optional[str] = None) -> List[TemplateInfo]:
        if schema_type:
            validate_namespace(schema_type)
            return self._type_templates(schema_type)

        try:
            entries = self.driver.list_entries(self._path(TEMPLATES_DIR))
        except GitProviderError as e:
            if e.is_not_found:
                return []
            raise

        templates = []
        for entry in entries:
            if entry.is_dir:
                templates.extend(self._type_templates(entry.name))
        return templates

    def template(self, template_id: str) -> TemplateInfo:
        schema_type, file_name = split_template_id(template_id)
        try:
            document = self.driver.get_file(self._path(TEMPLATES_DIR, schema_type, file_name))
        except GitProviderError as e:
            if e.is_not_found:
                raise NotFoundError('Template', template_id) from e
            raise
        template = build_template(schema_type, file_name, document.frontmatter, document.content)
        if template is None:
            raise NotFoundError('Template', template_id)
        return template


DEFAULT_SCHEMAS = (
    SchemaInfo(
        id='user-story',
        title='User Story',
        description='Template for writing user stories',
        version='1.0.0',
        fields=(
            SchemaField('title', 'string', True),
            SchemaField('description', 'string', True),
            SchemaField('acceptanceCriteria', 'string[]', False),
        ),
    ),
    SchemaInfo(
        id='bug-report',
        title='Bug Report',
        description='Template for reporting bugs',
        version='1.0.0',
        fields=(
            SchemaField('title', 'string', True),
            SchemaField('description', 'string', True),
            SchemaField('steps', 'string[]', True),
            SchemaField('expected', 'string', True),
            SchemaField('actual', 'string', True),
        ),
    ),
)

DEFAULT_TEMPLATES = (
    TemplateInfo(
        id='user-story/basic',
        name='basic',
        description='Simple user story template',
        schema_type='user-story',
        content=(
            '# {{title}}\n\n**As a** user\n**I want** {{description}}\n'
            '**So that** I can achieve my goal\n\n## Acceptance Criteria\n'
            '{{#each acceptanceCriteria}}\n- {{this}}\n{{/each}}'
        ),
        frontmatter={'title': 'Basic User Story', 'description': 'Simple user story template'},
    ),
    TemplateInfo(
        id='bug-report/detailed',
        name='detailed',
        description='Comprehensive bug report template',
        schema_type='bug-report',
        content=(
            '# Bug: {{title}}\n\n## Description\n{{description}}\n\n'
            '## Steps to Reproduce\n{{#each steps}}\n{{@index}}. {{this}}\n{{/each}}\n\n'
            '## Expected Result\n{{expected}}\n\n## Actual Result\n{{actual}}'
        ),
        frontmatter={'title': 'Detailed Bug Report', 'description': 'Comprehensive bug report template'},
    ),
)


class DefaultSchemaSource:
    """Built-in schemas and templates, used when nothing else answers."""

    name = 'defaults'

    def schemas(self) -> List[SchemaInfo]:
        return list(DEFAULT_SCHEMAS)

    def schema(self, schema_id: str) -> SchemaInfo:
        for schema in DEFAULT_SCHEMAS:
            if schema.id == schema_id:
                return schema
        raise NotFoundError('Schema', schema_id)

    def templates(self, schema_type: Optional[str] = None) -> List[TemplateInfo]:
        return [t for t in DEFAULT_TEMPLATES if not schema_type or t.schema_type == schema_type]

    def template(self, template_id: str) -> TemplateInfo:
        for template in DEFAULT_TEMPLATES:
            if template.id == template_id:
                return template
        raise NotFoundError('Template', template_id)


class SchemaCache:
    """
    In-memory schema/template cache with one shared timestamp.

    Schemas are keyed by id, template lists by schema type or "all".
    Entries are served only while ``clock() - last_update < timeout``.
    """

    ALL = 'all'

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self._lock = threading.Lock()
        self._schemas: Dict[str, SchemaInfo] = {}
        self._has_all_schemas = False
        self._templates: Dict[str, List[TemplateInfo]] = {}
        self._last_update: Optional[float] = None
        self._updated_at: Optional[datetime] = None

    def _valid(self) -> bool:
        return self._last_update is not None and self.clock() - self._last_update < self.timeout

    def _touch(self) -> None:
        self._last_update = self.clock()
        self._updated_at = datetime.now()

    def is_valid(self) -> bool:
        with self._lock:
            return self._valid()

    def schema_list(self) -> Optional[List[SchemaInfo]]:
        with self._lock:
            if self._valid() and self._has_all_schemas:
                return list(self._schemas.values())
            return None

    def put_schemas(self, schemas: List[SchemaInfo]) -> None:
        with self._lock:
            self._schemas = {s.id: s for s in schemas}
            self._has_all_schemas = True
            self._touch()

    def schema(self, schema_id: str) -> Optional[SchemaInfo]:
        with self._lock:
            return self._schemas.get(schema_id) if self._valid() else None

    def put_schema(self, schema: SchemaInfo) -> None:
        with self._lock:
            self._schemas[schema.id] = schema
            self._touch()

    def templates(self, schema_type: Optional[str]) -> Optional[List[TemplateInfo]]:
        with self._lock:
            if not self._valid():
                return None
            cached = self._templates.get(schema_type or self.ALL)
            return list(cached) if cached is not None else None

    def put_templates(self, schema_type: Optional[str], templates: List[TemplateInfo]) -> None:
        with self._lock:
            self._templates[schema_type or self.ALL] = list(templates)
            self._touch()

    def template(self, template_id: str) -> Optional[TemplateInfo]:
        with self._lock:
            if not self._valid():
                return None
            for templates in self._templates.values():
                for template in templates:
                    if template.id == template_id:
                        return template
            return None

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()
            self._has_all_schemas = False
            self._templates.clear()
            self._last_update = None
            self._updated_at = None

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'schemas': len(self._schemas),
                'templates': sum(len(t) for t in self._templates.values()),
                'last_update': self._updated_at.isoformat() if self._updated_at else None,
            }
