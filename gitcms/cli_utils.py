"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps
from typing import Any, Dict, Iterable, Tuple

import click
import yaml

from . import frontmatter as fm_codec
from .api import GitCms
from .config import configure_logging, load_config, namespace_settings_from
from .errors import GitCmsError
from .exit_codes import INTERRUPTED, SUCCESS, get_exit_code_for_exception
from .services import AnonymousIdentityProvider, StaticIdentityProvider

logger = logging.getLogger(__name__)


def to_jsonable(item: Any) -> Any:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    return item


def emit(item: Any) -> None:
    """Print one JSON line to stdout."""
    print(json.dumps(to_jsonable(item), ensure_ascii=False, default=str), flush=True)


def emit_error(exc: BaseException) -> None:
    if isinstance(exc, GitCmsError):
        error_obj = exc.to_dict()
    else:
        error_obj = {"error": type(exc).__name__, "message": str(exc)}
    error_obj['exit_code'] = get_exit_code_for_exception(exc)
    click.echo(json.dumps(error_obj, ensure_ascii=False, default=str), err=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSONL output on stdout (one line per item)
    - Errors as a JSON object on stderr
    - Exit code mapped from the error type

    The command returns a list, a single object, or None when it
    handled output itself (e.g. a table).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)

            if result is None:
                pass
            elif isinstance(result, (list, tuple)):
                for item in result:
                    emit(item)
            else:
                emit(result)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except GitCmsError as e:
            logger.debug(f"Command failed: {e}", exc_info=True)
            emit_error(e)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def get_app(ctx: click.Context) -> GitCms:
    """
    The GitCms instance for this invocation, built on first use.

    Tests can supply one with ``obj={'app': ...}``.
    """
    obj = ctx.find_root().ensure_object(dict)
    if 'app' not in obj:
        config = load_config(obj.get('config_path'))
        configure_logging(config, verbose=obj.get('verbose', False))

        if obj.get('user'):
            settings = namespace_settings_from(config)
            identity_provider = StaticIdentityProvider.for_user(
                obj['user'],
                obj.get('groups', ()),
                user_claim=settings.user_claim,
                groups_claim=settings.groups_claim,
            )
        else:
            identity_provider = AnonymousIdentityProvider()

        obj['app'] = GitCms(config=config, identity_provider=identity_provider)
        ctx.find_root().call_on_close(obj['app'].close)
    return obj['app']


def parse_pairs(pairs: Iterable[str], option: str = '--value') -> Dict[str, Any]:
    """
    Parse repeated ``key=value`` options.

    A repeated key collects a list; a value written as ``[a, b]`` is read
    as a YAML list.
    """
    values: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint=option)

        value: Any = raw
        if raw.startswith('['):
            try:
                value = yaml.safe_load(raw)
            except yaml.YAMLError as e:
                raise click.BadParameter(f"invalid list for '{key}': {e}", param_hint=option)

        if key in values:
            existing = values[key]
            values[key] = (existing if isinstance(existing, list) else [existing]) + (
                value if isinstance(value, list) else [value]
            )
        else:
            values[key] = value
    return values


def read_body(content: str, source) -> Tuple[Dict[str, Any], str]:
    """
    Document body from --content or --file.

    A file that starts with a frontmatter block is split into
    (frontmatter, content).
    """
    if content is not None and source is not None:
        raise click.UsageError("use either --content or --file, not both")
    if source is not None:
        return fm_codec.decode(source.read())
    if content is not None:
        return {}, content
    raise click.UsageError("one of --content or --file is required")
