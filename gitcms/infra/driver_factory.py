"""
Driver factory for gitcms.

Maps a ProviderConfig's platform to its driver class.
"""

from typing import Dict, List, Optional, Type

import requests

from ..errors import ConfigurationError
from .gitea_driver import GiteaDriver
from .github_driver import GitHubDriver
from .gitlab_driver import GitLabDriver
from .provider_driver import DEFAULT_TIMEOUT, Platform, ProviderConfig, ProviderDriver

DRIVERS: Dict[str, Type[ProviderDriver]] = {
    Platform.GITHUB.value: GitHubDriver,
    Platform.GITLAB.value: GitLabDriver,
    Platform.GITEA.value: GiteaDriver,
}


def supported_platforms() -> List[str]:
    return sorted(DRIVERS)


def create_driver(
    config: ProviderConfig,
    timeout: int = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> ProviderDriver:
    """
    Build the driver for ``config.platform``.

    Raises:
        ConfigurationError: If the platform is not supported
    """
    platform = config.platform.value if isinstance(config.platform, Platform) else str(config.platform)
    driver_class = DRIVERS.get(platform.lower())
    if driver_class is None:
        raise ConfigurationError(
            f"Unsupported Git platform: {platform}",
            {'supported': supported_platforms()},
        )
    return driver_class(config, timeout=timeout, session=session)


class DriverFactory:
    create = staticmethod(create_driver)
    supported_platforms = staticmethod(supported_platforms)
