"""
Handles the 'files' command group: document CRUD, move and history.

Default output is JSONL; --table renders a rich table instead.
"""

import click

from .. import frontmatter as fm_codec
from ..cli_utils import get_app, parse_pairs, read_body, standard_command
from ..domain import ListQuery
from ..render import render_files_table, render_history_table

namespace_option = click.option(
    '-n', '--namespace', default=None, help='Namespace (default: repository root)'
)


@click.group('files')
def files_cmd():
    """Documents in the remote repository."""
    pass


@files_cmd.command('list')
@click.option('-s', '--search', default=None, help='Match name, display name or schema type')
@click.option('-t', '--schema-type', default=None, help='Only files of this schema type')
@click.option('--page', type=int, default=1, show_default=True)
@click.option('--limit', type=int, default=50, show_default=True)
@click.option('--table', is_flag=True, help='Display as formatted table')
@click.pass_context
@standard_command
def list_files(ctx, search, schema_type, page, limit, table):
    """List documents visible to the current user.

    Examples:

    \b
        gitcms files list
        gitcms files list --search login --table
        gitcms --user alice --group team-x files list -t user-story
    """
    items = get_app(ctx).list_files(
        ListQuery(search=search, schema_type=schema_type, page=page, limit=limit)
    )
    if table:
        render_files_table(items)
        return None
    return items


@files_cmd.command('get')
@click.argument('filename')
@namespace_option
@click.option('-r', '--revision', default=None, help='Read at this commit instead of HEAD')
@click.pass_context
@standard_command
def get_file(ctx, filename, namespace, revision):
    """Fetch one document as JSON."""
    app = get_app(ctx)
    if revision:
        return app.get_file_at_revision(filename, revision, namespace)
    return app.get_file(filename, namespace)


@files_cmd.command('show')
@click.argument('filename')
@namespace_option
@click.option('-r', '--revision', default=None, help='Show at this commit instead of HEAD')
@click.pass_context
@standard_command
def show_file(ctx, filename, namespace, revision):
    """Print one document as markdown with its frontmatter."""
    app = get_app(ctx)
    if revision:
        document = app.get_file_at_revision(filename, revision, namespace)
    else:
        document = app.get_file(filename, namespace)
    text = fm_codec.encode(document.frontmatter, document.content) if document.frontmatter else document.content
    click.echo(text, nl=not text.endswith('\n'))
    return None


@files_cmd.command('create')
@click.argument('filename')
@namespace_option
@click.option('-c', '--content', default=None, help='Markdown body')
@click.option('-f', '--file', 'source', type=click.File('r'), default=None,
              help='Read the document (frontmatter allowed) from a file, - for stdin')
@click.option('-m', '--meta', multiple=True, help='Frontmatter key=value (repeatable)')
@click.pass_context
@standard_command
def create_file(ctx, filename, namespace, content, source, meta):
    """Create a new document.

    Examples:

    \b
        gitcms files create notes.user-story.md -c "# Login" -m title=Login
        gitcms files create bug.bug-report.md -f draft.md -n team-x
    """
    frontmatter, body = read_body(content, source)
    frontmatter.update(parse_pairs(meta, option='--meta'))
    return get_app(ctx).create_file(filename, body, frontmatter, namespace)


@files_cmd.command('update')
@click.argument('filename')
@namespace_option
@click.option('-c', '--content', default=None, help='Markdown body')
@click.option('-f', '--file', 'source', type=click.File('r'), default=None,
              help='Read the document (frontmatter allowed) from a file, - for stdin')
@click.option('-m', '--meta', multiple=True, help='Frontmatter key=value (repeatable)')
@click.option('-r', '--revision', default=None,
              help='Expected current revision; the update fails if the file changed since')
@click.pass_context
@standard_command
def update_file(ctx, filename, namespace, content, source, meta, revision):
    """Replace a document's content.

    Without --file or --meta the existing frontmatter is kept.
    """
    frontmatter, body = read_body(content, source)
    frontmatter.update(parse_pairs(meta, option='--meta'))
    return get_app(ctx).update_file(filename, body, frontmatter or None, namespace, revision)


@files_cmd.command('delete')
@click.argument('filename')
@namespace_option
@click.option('-r', '--revision', default=None, help='Expected current revision')
@click.pass_context
@standard_command
def delete_file(ctx, filename, namespace, revision):
    """Delete a document."""
    return get_app(ctx).delete_file(filename, namespace, revision)


@files_cmd.command('move')
@click.argument('filename')
@click.argument('new_filename')
@namespace_option
@click.option('--to-namespace', default=None, help='Target namespace (default: same as source)')
@click.pass_context
@standard_command
def move_file(ctx, filename, new_filename, namespace, to_namespace):
    """Rename a document, optionally into another namespace."""
    return get_app(ctx).move_file(filename, new_filename, namespace, to_namespace)


@files_cmd.command('history')
@click.argument('filename')
@namespace_option
@click.option('--limit', type=int, default=20, show_default=True)
@click.option('--table', is_flag=True, help='Display as formatted table')
@click.pass_context
@standard_command
def file_history(ctx, filename, namespace, limit, table):
    """Commits that touched a document, newest first."""
    entries = get_app(ctx).get_history(filename, limit, namespace)
    if table:
        render_history_table(entries, title=filename)
        return None
    return entries
