"""
GitHub REST API client.

Fetches the package.json manifest and open Dependabot alerts for a
repository. Per-repository failures degrade to empty results; only the
initial credential check is allowed to abort a run.
"""

import base64
import binascii
import json
from typing import Optional, List, Dict, Any

import requests
import structlog

from ..config import Config
from ..comparison import merge_dependencies
from ..errors import CredentialError
from .models import RepositoryTarget, SecurityAdvisory

logger = structlog.get_logger(__name__)


class GitHubClient:
    """
    Client for the GitHub REST API.

    Every request is attempted once; there is no retry.
    """

    MANIFEST_PATH = "package.json"
    ALERTS_PAGE_SIZE = 100

    def __init__(self, config: Config):
        """
        Initialize the GitHub client.

        Args:
            config: Application configuration with the access token.
        """
        self.config = config
        self.base_url = config.github_api_url.rstrip("/")
        self.timeout = config.request_timeout_seconds

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "Depwatch-Dependency-Monitor/1.0",
            "Accept": "application/vnd.github+json",
            "Authorization": f"token {config.github_token}",
        })

        logger.info("github_client_initialized", base_url=self.base_url)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("github_request", url=url)
        return self.session.get(url, params=params, timeout=self.timeout)

    def verify_credentials(self) -> str:
        """
        Check that the access token is accepted by GitHub.

        Returns:
            Login of the authenticated account.

        Raises:
            CredentialError: On authentication or network failure.
        """
        try:
            response = self._get("/user")
        except requests.RequestException as e:
            raise CredentialError(f"Could not reach GitHub: {e}") from e

        if response.status_code != 200:
            raise CredentialError(
                f"GitHub rejected the access token: {response.status_code} - {response.text[:200]}"
            )

        try:
            login = response.json().get("login", "")
        except ValueError:
            login = ""

        logger.info("github_credentials_verified", login=login)
        return login

    def fetch_manifest(self, target: RepositoryTarget) -> Optional[Dict[str, Any]]:
        """
        Fetch and parse the repository's package.json.

        Args:
            target: Repository to read from.

        Returns:
            Parsed manifest, or None if it could not be fetched or parsed.
        """
        path = f"/repos/{target.full_name}/contents/{self.MANIFEST_PATH}"

        try:
            response = self._get(path)
            if response.status_code != 200:
                logger.warning(
                    "manifest_fetch_failed",
                    repo=target.full_name,
                    status_code=response.status_code,
                    detail=response.text[:200]
                )
                return None

            content = response.json().get("content", "")
            raw = base64.b64decode(content)
            manifest = json.loads(raw.decode("utf-8"))

        except requests.RequestException as e:
            logger.warning("manifest_fetch_failed", repo=target.full_name, error=str(e))
            return None
        except (binascii.Error, UnicodeDecodeError, ValueError, TypeError, AttributeError) as e:
            logger.warning(
                "manifest_parse_failed",
                repo=target.full_name,
                error=str(e),
                error_type=e.__class__.__name__
            )
            return None

        if not isinstance(manifest, dict):
            logger.warning("manifest_parse_failed", repo=target.full_name, error="manifest is not an object")
            return None

        logger.debug("manifest_fetched", repo=target.full_name)
        return manifest

    def fetch_dependencies(self, target: RepositoryTarget) -> Optional[Dict[str, Any]]:
        """
        Fetch the merged dependency mapping for a repository.

        Returns:
            Name to version-range mapping, or None if the manifest is unavailable.
        """
        manifest = self.fetch_manifest(target)
        if manifest is None:
            return None
        return merge_dependencies(manifest)

    def _fetch_alert_pages(self, target: RepositoryTarget) -> List[Dict[str, Any]]:
        """
        Collect raw alerts from every page of the Dependabot alerts listing.

        Pages are followed through the Link header. A failing page ends the
        listing; alerts from earlier pages are kept.
        """
        url = f"{self.base_url}/repos/{target.full_name}/dependabot/alerts"
        params: Optional[Dict[str, Any]] = {"state": "open", "per_page": self.ALERTS_PAGE_SIZE}
        alerts: List[Dict[str, Any]] = []
        page = 0

        while url:
            page += 1
            logger.debug("github_request", url=url, page=page)

            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                if response.status_code != 200:
                    logger.warning(
                        "advisory_fetch_failed",
                        repo=target.full_name,
                        page=page,
                        status_code=response.status_code,
                        detail=response.text[:200]
                    )
                    break
                data = response.json()
            except requests.RequestException as e:
                logger.warning("advisory_fetch_failed", repo=target.full_name, page=page, error=str(e))
                break
            except ValueError as e:
                logger.warning("advisory_parse_failed", repo=target.full_name, page=page, error=str(e))
                break

            if not isinstance(data, list):
                logger.warning(
                    "advisory_parse_failed",
                    repo=target.full_name,
                    page=page,
                    error="response is not a list"
                )
                break

            alerts.extend(data)

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        return alerts

    def fetch_advisories(self, target: RepositoryTarget) -> List[SecurityAdvisory]:
        """
        Fetch open Dependabot alerts for a repository.

        Args:
            target: Repository to read from.

        Returns:
            List of advisories; empty if alerts could not be fetched.
        """
        advisories = []
        for alert in self._fetch_alert_pages(target):
            try:
                advisories.append(SecurityAdvisory.from_dependabot_alert(alert))
            except Exception as e:
                number = alert.get("number", "unknown") if isinstance(alert, dict) else "unknown"
                logger.warning("advisory_alert_skipped", repo=target.full_name, alert=number, error=str(e))

        logger.debug("advisories_fetched", repo=target.full_name, count=len(advisories))
        return advisories

    def close(self):
        """Close the HTTP session."""
        self.session.close()
