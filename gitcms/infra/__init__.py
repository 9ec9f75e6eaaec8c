"""
Infrastructure layer for gitcms.

Contains abstractions for external systems:
- ProviderDriver: GitHub, GitLab and Gitea REST APIs behind one contract
- create_driver: platform dispatch
- GitClient: git command execution

These provide clean interfaces that can be mocked for testing.
"""

from .provider_driver import ProviderDriver, ProviderConfig, Platform, join_path
from .github_driver import GitHubDriver
from .gitlab_driver import GitLabDriver
from .gitea_driver import GiteaDriver
from .driver_factory import DriverFactory, create_driver, supported_platforms
from .git_client import GitClient

__all__ = [
    'ProviderDriver',
    'ProviderConfig',
    'Platform',
    'join_path',
    'GitHubDriver',
    'GitLabDriver',
    'GiteaDriver',
    'DriverFactory',
    'create_driver',
    'supported_platforms',
    'GitClient',
]
