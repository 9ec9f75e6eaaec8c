#!/usr/bin/env python3

import click

from gitcms import __version__
from gitcms.cli_utils import get_app, standard_command
from gitcms.commands.config import config_cmd
from gitcms.commands.files import files_cmd
from gitcms.commands.schemas import schemas_cmd


@click.group()
@click.version_option(version=__version__)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Config file (default: $GITCMS_CONFIG or ~/.gitcms/config.*)')
@click.option('-u', '--user', default=None, help='Act as this user id')
@click.option('-g', '--group', 'groups', multiple=True, help='Group of the user (repeatable)')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, config_path, user, groups, verbose):
    """gitcms - Markdown documents and schemas stored in Git repositories.

    Documents live on GitHub, GitLab or Gitea and are read and written
    through the provider's REST API. Schemas and templates come from a
    cloned Git repository, with built-in defaults as a fallback.
    """
    obj = ctx.ensure_object(dict)
    obj.setdefault('config_path', config_path)
    obj.setdefault('user', user)
    obj.setdefault('groups', groups)
    obj.setdefault('verbose', verbose)


@click.command('whoami')
@click.pass_context
@standard_command
def whoami_cmd(ctx):
    """Show the resolved namespace context."""
    app = get_app(ctx)
    context = app.context()
    result = context.to_dict()
    result['namespaces_enabled'] = app.resolver.is_enabled()
    return result


# Command groups
cli.add_command(files_cmd)
cli.add_command(schemas_cmd)
cli.add_command(config_cmd)

# Individual commands
cli.add_command(whoami_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
