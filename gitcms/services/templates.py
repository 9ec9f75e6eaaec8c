"""
Template helpers for gitcms.

render() is a minimal mustache-like substitution, not a template engine:
- ``{{name}}`` is replaced with the stringified value of ``name``
- ``{{#each items}}...{{/each}}`` repeats its body once per list element,
  with ``{{this}}`` as the element and ``{{@index}}`` as its 1-based
  position; repetitions are joined with newlines

Placeholders with no matching value are left as they are.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..domain import SchemaField, TemplateInfo, ValidationResult
from ..errors import ValidationError

TEMPLATE_SUFFIX = '.md'
NO_DESCRIPTION = 'No description available'


def _stringify(value: Any) -> str:
    if value is None or value is False or value == '':
        return ''
    if value is True:
        return 'true'
    if isinstance(value, (list, tuple)):
        return ','.join(_stringify(v) for v in value)
    return str(value)


def render(content: str, values: Mapping[str, Any]) -> str:
    """
    Substitute ``values`` into a template body.

    Example:
        render("# {{title}}\\n{{#each tags}}- {{this}}{{/each}}",
               {'title': 'Hi', 'tags': ['a', 'b']})
        # '# Hi\\n- a\\n- b'
    """
    for key, value in values.items():
        content = content.replace('{{' + key + '}}', _stringify(value))

    for key, value in values.items():
        if not isinstance(value, (list, tuple)):
            continue
        block = re.compile(r'\{\{#each ' + re.escape(key) + r'\}\}(.*?)\{\{/each\}\}', re.DOTALL)
        content = block.sub(
            lambda match, items=value: '\n'.join(
                match.group(1)
                .replace('{{this}}', str(item))
                .replace('{{@index}}', str(index))
                for index, item in enumerate(items, 1)
            ),
            content,
        )
    return content


def _is_blank(value: Any) -> bool:
    # None, False, 0, 0.0 and empty strings or collections all count as missing
    return not value


def validate_values(fields: Iterable[SchemaField], values: Mapping[str, Any]) -> ValidationResult:
    """
    Check ``values`` against schema fields.

    Required fields must be present and non-empty. Type checks cover
    ``string`` and ``string[]`` only; other field types are accepted as-is.
    """
    errors: List[str] = []
    for field in fields:
        value = values.get(field.name)
        if field.required and _is_blank(value):
            errors.append(f"Field '{field.name}' is required")

        if value is None:
            continue
        if field.type == 'string' and not isinstance(value, str):
            errors.append(f"Field '{field.name}' must be a string")
        elif field.type == 'string[]' and (
            not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value)
        ):
            errors.append(f"Field '{field.name}' must be an array of strings")

    return ValidationResult(valid=not errors, errors=tuple(errors))


def split_template_id(template_id: str) -> Tuple[str, str]:
    """
    Split ``"schema_type/name"`` into (schema_type, file name).

    Raises:
        ValidationError: If the id is not two safe, non-empty segments
    """
    parts = template_id.split('/')
    if len(parts) != 2 or not all(parts) or any(p in ('.', '..') for p in parts):
        raise ValidationError(
            f"Invalid template id '{template_id}'. Expected: schemaType/templateName",
            {'template_id': template_id},
        )
    schema_type, name = parts
    file_name = name if name.endswith(TEMPLATE_SUFFIX) else f"{name}{TEMPLATE_SUFFIX}"
    return schema_type, file_name


def build_template(
    schema_type: str,
    file_name: str,
    frontmatter: Dict[str, Any],
    content: str,
) -> Optional[TemplateInfo]:
    """TemplateInfo for one template file, or None when it has no frontmatter."""
    if not frontmatter:
        return None
    name = file_name[:-len(TEMPLATE_SUFFIX)] if file_name.endswith(TEMPLATE_SUFFIX) else file_name
    return TemplateInfo(
        id=f"{schema_type}/{name}",
        name=name,
        description=str(frontmatter.get('description') or frontmatter.get('title') or NO_DESCRIPTION),
        schema_type=schema_type,
        content=content,
        frontmatter=dict(frontmatter),
    )
