"""
Handles the 'schemas' command group: schema and template lookups,
rendering, validation and the schema repository cache.
"""

import json

import click
import yaml

from ..cli_utils import get_app, parse_pairs, standard_command
from ..exit_codes import DATA_ERROR
from ..render import render_schemas_table, render_templates_table


def _repository(ctx):
    """Schema repository, waiting for the initial clone to settle."""
    app = get_app(ctx)
    repository = app.schemas
    repository.wait_until_ready(timeout=repository.config.clone_timeout)
    return repository


def _values(pairs, values_file):
    values = {}
    if values_file is not None:
        loaded = yaml.safe_load(values_file.read()) or {}
        if not isinstance(loaded, dict):
            raise click.BadParameter("must contain a mapping", param_hint='--values-file')
        values.update(loaded)
    values.update(parse_pairs(pairs))
    return values


values_options = [
    click.option('-V', '--value', 'pairs', multiple=True,
                 help='Template value key=value (repeat a key, or use [a, b], for lists)'),
    click.option('--values-file', type=click.File('r'), default=None,
                 help='YAML or JSON file with template values'),
]


def with_values(func):
    for option in reversed(values_options):
        func = option(func)
    return func


@click.group('schemas')
def schemas_cmd():
    """Schemas and templates."""
    pass


@schemas_cmd.command('list')
@click.option('--table', is_flag=True, help='Display as formatted table')
@click.pass_context
@standard_command
def list_schemas(ctx, table):
    """List available schemas."""
    schemas = _repository(ctx).get_schemas()
    if table:
        render_schemas_table(schemas)
        return None
    return schemas


@schemas_cmd.command('show')
@click.argument('schema_id')
@click.pass_context
@standard_command
def show_schema(ctx, schema_id):
    """Show one schema and its fields."""
    return _repository(ctx).get_schema(schema_id)


@schemas_cmd.command('templates')
@click.option('-t', '--schema-type', default=None, help='Only templates for this schema type')
@click.option('--table', is_flag=True, help='Display as formatted table')
@click.pass_context
@standard_command
def list_templates(ctx, schema_type, table):
    """List templates."""
    templates = _repository(ctx).get_templates(schema_type)
    if table:
        render_templates_table(templates)
        return None
    return templates


@schemas_cmd.command('template')
@click.argument('template_id')
@click.pass_context
@standard_command
def show_template(ctx, template_id):
    """Show one template (id is schemaType/name)."""
    return _repository(ctx).get_template(template_id)


@schemas_cmd.command('render')
@click.argument('template_id')
@with_values
@click.option('--validate/--no-validate', default=True, show_default=True,
              help='Check values against the schema before rendering')
@click.pass_context
@standard_command
def render_template(ctx, template_id, pairs, values_file, validate):
    """Render a template with values and print the markdown.

    Examples:

    \b
        gitcms schemas render user-story/basic -V title=Login \\
            -V description="to sign in" -V acceptanceCriteria="[works, is fast]"
    """
    repository = _repository(ctx)
    values = _values(pairs, values_file)
    if validate:
        result = repository.validate_template_values(template_id, values)
        if not result.valid:
            click.echo(json.dumps(result.to_dict()), err=True)
            raise click.exceptions.Exit(DATA_ERROR)
    click.echo(repository.render_template(template_id, values))
    return None


@schemas_cmd.command('create')
@click.argument('template_id')
@click.argument('filename')
@click.option('-n', '--namespace', default=None, help='Namespace (default: repository root)')
@with_values
@click.pass_context
@standard_command
def create_from_template(ctx, template_id, filename, namespace, pairs, values_file):
    """Render a template and store it as a new document.

    Examples:

    \b
        gitcms schemas create user-story/basic login.user-story.md -n team-x \\
            -V title=Login -V description="to sign in"
    """
    _repository(ctx)
    return get_app(ctx).create_from_template(template_id, filename, _values(pairs, values_file), namespace)


@schemas_cmd.command('validate')
@click.argument('template_id')
@with_values
@click.pass_context
@standard_command
def validate_values(ctx, template_id, pairs, values_file):
    """Validate template values against the template's schema."""
    return _repository(ctx).validate_template_values(template_id, _values(pairs, values_file))


@schemas_cmd.command('cache')
@click.option('--clear', is_flag=True, help='Drop all cached schemas and templates')
@click.pass_context
@standard_command
def cache_stats(ctx, clear):
    """Show (or clear) the schema cache."""
    repository = _repository(ctx)
    if clear:
        repository.clear_cache()
    stats = repository.get_cache_stats()
    stats['valid'] = repository.is_cache_valid()
    return stats


@schemas_cmd.command('refresh')
@click.pass_context
@standard_command
def refresh(ctx):
    """Pull the schema repository now."""
    repository = _repository(ctx)
    updated = repository.refresh()
    return {'updated': updated, 'state': repository.state.value}
