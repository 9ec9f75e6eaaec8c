#!/usr/bin/env python3

import copy
import json
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

from .errors import ConfigurationError
from .infra import Platform, ProviderConfig, supported_platforms
from .services import NamespaceSettings, SchemaRepositoryConfig

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)
logger = logging.getLogger("gitcms")

ENV_PREFIX = "GITCMS_"

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']

# Unprefixed variables understood for compatibility with existing deployments
ENV_ALIASES = {
    'GIT_PROVIDER': ('provider', 'platform'),
    'GIT_PATH': ('provider', 'path'),
    'NAMESPACE_ENABLED': ('namespace', 'enabled'),
    'NAMESPACE_USER_CLAIM': ('namespace', 'user_claim'),
    'NAMESPACE_GROUPS_CLAIM': ('namespace', 'groups_claim'),
    'DEFAULT_NAMESPACE': ('namespace', 'default_namespace'),
    'SCHEMA_REPO_ENABLED': ('schema_repo', 'enabled'),
    'SCHEMA_REPO_TYPE': ('schema_repo', 'type'),
    'SCHEMA_REPO_URL': ('schema_repo', 'url'),
    'SCHEMA_PULL_INTERVAL': ('schema_repo', 'pull_interval'),
    'SCHEMA_CACHE_TIMEOUT': ('schema_repo', 'cache_timeout'),
    'SCHEMA_SHALLOW_CLONE': ('schema_repo', 'shallow_clone'),
    'SCHEMA_AUTO_CLEANUP': ('schema_repo', 'auto_cleanup'),
    'SCHEMA_GIT_PLATFORM': ('schema_repo', 'git', 'platform'),
    'SCHEMA_GIT_TOKEN': ('schema_repo', 'git', 'token'),
    'SCHEMA_GIT_OWNER': ('schema_repo', 'git', 'owner'),
    'SCHEMA_GIT_REPO': ('schema_repo', 'git', 'repo'),
    'SCHEMA_GIT_BASE_URL': ('schema_repo', 'git', 'base_url'),
    'LOG_LEVEL': ('logging', 'level'),
}

# Per-platform credentials, applied when that platform is selected
PLATFORM_ENV = {
    'github': {'token': 'GITHUB_TOKEN', 'owner': 'GITHUB_OWNER', 'repo': 'GITHUB_REPO', 'base_url': 'GITHUB_BASE_URL'},
    'gitlab': {'token': 'GITLAB_TOKEN', 'owner': 'GITLAB_PROJECT_ID', 'base_url': 'GITLAB_URL'},
    'gitea': {'token': 'GITEA_TOKEN', 'owner': 'GITEA_OWNER', 'repo': 'GITEA_REPO', 'base_url': 'GITEA_URL'},
}

SECRET_KEYS = {'token'}


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GITCMS_CONFIG environment variable
    2. ~/.gitcms/ directory
    """
    if 'GITCMS_CONFIG' in os.environ:
        path = Path(os.environ['GITCMS_CONFIG'])
        if path.exists():
            return path

    gitcms_dir = Path.home() / '.gitcms'
    for filename in CONFIG_FILENAMES:
        path = gitcms_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return gitcms_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "provider": {
            "platform": "github",
            "token": "",
            "owner": "",
            "repo": "",
            "path": "",
            "base_url": "",
            "timeout": 30
        },
        "namespace": {
            "enabled": False,
            "user_claim": "sub",
            "groups_claim": "groups",
            "default_namespace": "shared"
        },
        "schema_repo": {
            "enabled": False,
            "type": "git",
            "url": "",
            "pull_interval": 300,
            "shallow_clone": True,
            "auto_cleanup": True,
            "cache_timeout": 300,
            "clone_timeout": 60,
            "backup_grace": 5,
            "work_dir": "",
            "git": {
                "platform": "",
                "token": "",
                "owner": "",
                "repo": "",
                "path": "",
                "base_url": ""
            }
        },
        "logging": {
            "level": "INFO"
        }
    }


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path: Optional[Path] = None):
    """Load configuration: defaults, then file, then environment."""
    config_path = Path(config_path) if config_path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
            if not isinstance(file_config, dict):
                raise ValueError("top level must be a mapping")
            config = merge_configs(config, file_config)
        except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_aliases(config)
    config = apply_env_overrides(config)
    configure_logging(config)

    return config


def save_config(config, config_path: Optional[Path] = None):
    """Save configuration to file; the format follows the file suffix."""
    config_path = Path(config_path) if config_path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    with open(config_path, 'w') as f:
        if suffix == '.toml':
            toml.dump(config, f)
        elif suffix in ('.yaml', '.yml'):
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce_env_value(value: str):
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def _set_path(config, keys, value):
    current_level = config
    for key in keys[:-1]:
        current_level = current_level.setdefault(key, {})
    current_level[keys[-1]] = value


def apply_env_aliases(config):
    """Apply unprefixed variables such as GIT_PROVIDER and GITHUB_TOKEN."""
    for env_key, keys in ENV_ALIASES.items():
        if env_key in os.environ:
            value = os.environ[env_key]
            _set_path(config, keys, value if keys[-1] in SECRET_KEYS else _coerce_env_value(value))

    platform = str(config.get('provider', {}).get('platform', '')).lower()
    for key, env_key in PLATFORM_ENV.get(platform, {}).items():
        if env_key in os.environ:
            # Credentials stay strings even when they look numeric
            _set_path(config, ('provider', key), os.environ[env_key])

    return config


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GITCMS_SECTION_SUBSECTION_KEY
    For example: GITCMS_SCHEMA_REPO_PULL_INTERVAL=60
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'GITCMS_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')
        typed_value = _coerce_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                if matched_key in SECRET_KEYS:
                    typed_value = value
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def configure_logging(config, verbose: bool = False) -> None:
    """Set the root log level from config (DEBUG when verbose)."""
    level_name = str(config.get('logging', {}).get('level', 'INFO')).upper()
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)
    logging.getLogger().setLevel(level)


def mask_secrets(config):
    """Copy of ``config`` with every token replaced by '***'."""
    masked = copy.deepcopy(config)

    def _mask(level):
        for key, value in level.items():
            if isinstance(value, dict):
                _mask(value)
            elif key in SECRET_KEYS and value:
                level[key] = '***'

    _mask(masked)
    return masked


def _provider_config(section: Dict[str, Any], where: str) -> ProviderConfig:
    platform = str(section.get('platform') or '').lower()
    if platform not in supported_platforms():
        raise ConfigurationError(
            f"Unsupported Git platform '{platform}' in [{where}]",
            {'supported': supported_platforms()},
        )

    token = str(section.get('token') or '')
    owner = str(section.get('owner') or '')
    repo = str(section.get('repo') or '')
    if not token:
        raise ConfigurationError(f"Missing token in [{where}]")
    if not owner:
        raise ConfigurationError(f"Missing owner in [{where}]")
    if not repo and platform != Platform.GITLAB.value:
        raise ConfigurationError(f"Missing repo in [{where}]")

    return ProviderConfig(
        platform=Platform(platform),
        token=token,
        owner=owner,
        repo=repo,
        path=str(section.get('path') or ''),
        base_url=section.get('base_url') or None,
    )


def provider_config_from(config) -> ProviderConfig:
    """
    Document repository settings.

    Raises:
        ConfigurationError: On an unsupported platform or missing credentials
    """
    return _provider_config(config.get('provider', {}), 'provider')


def schema_provider_config_from(config) -> Optional[ProviderConfig]:
    """Settings for reading the schema repository through an API, if configured."""
    section = config.get('schema_repo', {}).get('git', {})
    if not section.get('platform'):
        return None
    return _provider_config(section, 'schema_repo.git')


def namespace_settings_from(config) -> NamespaceSettings:
    section = config.get('namespace', {})
    return NamespaceSettings(
        enabled=bool(section.get('enabled', False)),
        user_claim=str(section.get('user_claim') or 'sub'),
        groups_claim=str(section.get('groups_claim') or 'groups'),
        default_namespace=str(section.get('default_namespace') or 'shared'),
    )


def schema_repository_config_from(config) -> SchemaRepositoryConfig:
    section = config.get('schema_repo', {})
    try:
        return SchemaRepositoryConfig(
            enabled=bool(section.get('enabled', False)),
            repo_type=str(section.get('type') or 'git'),
            git_url=section.get('url') or None,
            pull_interval=int(section.get('pull_interval', 300)),
            shallow_clone=bool(section.get('shallow_clone', True)),
            auto_cleanup=bool(section.get('auto_cleanup', True)),
            cache_timeout=int(section.get('cache_timeout', 300)),
            clone_timeout=int(section.get('clone_timeout', 60)),
            backup_grace=float(section.get('backup_grace', 5)),
            work_dir=section.get('work_dir') or None,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid [schema_repo] setting: {e}") from e
