"""
Schema and template domain objects for gitcms.

Schemas describe the fields a document type expects; templates are
markdown bodies (with frontmatter) bound to one schema type. Template ids
are composite: ``"{schema_type}/{template_name}"``.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# {{#each name}} or {{name}}; {{this}} and {{@index}} are block-local
PLACEHOLDER_PATTERN = re.compile(r'\{\{#each (\w+)\}\}|\{\{(?!this\}\})(\w+)\}\}')


@dataclass(frozen=True)
class SchemaField:
    name: str
    type: str = "string"
    required: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SchemaField':
        return cls(
            name=str(data.get('name', '')),
            type=str(data.get('type', 'string')),
            required=bool(data.get('required', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.type, 'required': self.required}


def schema_fields(schema: Dict[str, Any]) -> Tuple[SchemaField, ...]:
    """
    Extract field definitions from a schema document.

    Accepts either an explicit ``fields`` list or a JSON-Schema style
    ``properties`` mapping plus ``required`` list. JSON-Schema arrays of
    strings map to ``string[]``.
    """
    if isinstance(schema.get('fields'), list):
        return tuple(
            SchemaField.from_dict(f) for f in schema['fields'] if isinstance(f, dict)
        )

    properties = schema.get('properties')
    if not isinstance(properties, dict):
        return ()

    required = set(schema.get('required') or [])
    fields = []
    for name, prop in properties.items():
        prop = prop if isinstance(prop, dict) else {}
        json_type = prop.get('type', 'string')
        if json_type == 'array':
            items = prop.get('items') or {}
            item_type = items.get('type', 'string') if isinstance(items, dict) else 'string'
            field_type = f"{item_type}[]"
        else:
            field_type = str(json_type)
        fields.append(SchemaField(name=name, type=field_type, required=name in required))
    return tuple(fields)


@dataclass(frozen=True)
class SchemaInfo:
    id: str
    title: str
    description: str = ""
    version: Optional[str] = None
    fields: Tuple[SchemaField, ...] = ()

    @classmethod
    def from_document(cls, schema_id: str, schema: Dict[str, Any]) -> 'SchemaInfo':
        """Build from a parsed schema JSON document."""
        version = schema.get('version')
        return cls(
            id=schema_id,
            title=schema.get('title') or schema_id,
            description=schema.get('description') or '',
            version=str(version) if version is not None else None,
            fields=schema_fields(schema),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'version': self.version,
            'fields': [f.to_dict() for f in self.fields],
        }


@dataclass(frozen=True)
class TemplateInfo:
    id: str
    name: str
    description: str
    schema_type: str
    content: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)

    @property
    def variables(self) -> List[str]:
        """Placeholder names used in the body, in order of first use."""
        names: List[str] = []
        for match in PLACEHOLDER_PATTERN.finditer(self.content):
            name = match.group(1) or match.group(2)
            if name not in names:
                names.append(name)
        return names

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'schema_type': self.schema_type,
            'content': self.content,
            'frontmatter': dict(self.frontmatter),
            'variables': self.variables,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {'valid': self.valid, 'errors': list(self.errors)}
