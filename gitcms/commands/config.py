import json
from pathlib import Path

import click

from gitcms.config import get_config_path, get_default_config, load_config, mask_secrets, save_config

FORMAT_SUFFIXES = {'json': '.json', 'toml': '.toml', 'yaml': '.yaml'}


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    Tokens are masked. By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    config_path = ctx.find_root().ensure_object(dict).get('config_path')

    if path:
        print(json.dumps({"config_path": str(config_path or get_config_path())}))
        return

    config = mask_secrets(load_config(config_path))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--format", "fmt", type=click.Choice(sorted(FORMAT_SUFFIXES)), default="toml",
              show_default=True, help="Config file format")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init_config(ctx, fmt, force):
    """Write a config file with every default filled in."""
    config_path = ctx.find_root().ensure_object(dict).get('config_path')
    if config_path:
        target = Path(config_path)
    else:
        target = get_config_path().with_suffix(FORMAT_SUFFIXES[fmt])

    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")

    written = save_config(get_default_config(), target)
    print(json.dumps({"config_path": str(written)}))
