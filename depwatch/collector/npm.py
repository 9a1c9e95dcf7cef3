"""
npm registry client.

Looks up the latest published version of a package. Private or
unpublished packages are a normal outcome, so every failure resolves
to "no information" instead of an error.
"""

from typing import Optional
from urllib.parse import quote

import requests
import structlog

from ..config import Config
from .models import PackageInfo

logger = structlog.get_logger(__name__)


class NpmRegistryClient:
    """Client for the public npm registry."""

    DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"

    def __init__(self, config: Config):
        """
        Initialize the registry client.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.registry_url = (config.npm_registry_url or self.DEFAULT_REGISTRY_URL).rstrip("/")
        self.timeout = config.request_timeout_seconds

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "Depwatch-Dependency-Monitor/1.0",
            "Accept": "application/json"
        })

        logger.info("npm_client_initialized", registry_url=self.registry_url)

    def package_url(self, name: str) -> str:
        """Registry URL for a package; scoped names keep '@' and encode '/'."""
        return f"{self.registry_url}/{quote(name, safe='@')}"

    def get_package_info(self, name: str) -> Optional[PackageInfo]:
        """
        Get the latest published version of a package.

        Args:
            name: Package name (scoped names allowed).

        Returns:
            PackageInfo, or None if the registry has no usable answer.
        """
        url = self.package_url(name)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug("npm_lookup_failed", package=name, error=str(e))
            return None

        if response.status_code != 200:
            logger.debug("npm_package_unavailable", package=name, status_code=response.status_code)
            return None

        try:
            return PackageInfo.from_registry_data(response.json())
        except (ValueError, AttributeError) as e:
            logger.debug("npm_response_invalid", package=name, error=str(e))
            return None

    def close(self):
        """Close the HTTP session."""
        self.session.close()
