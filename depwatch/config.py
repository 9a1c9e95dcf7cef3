"""
Configuration module for Depwatch.

Loads configuration from environment variables, an optional .env file and
the repository list in repos.yaml, validates required settings, and
provides typed access to configuration values.
"""

import os
import sys
from pathlib import Path
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field
from dotenv import load_dotenv

from .collector.models import RepositoryTarget


@dataclass
class Config:
    """Application configuration, built once at process entry."""

    # GitHub Configuration
    github_token: str = ""
    github_api_url: str = "https://api.github.com"

    # npm Registry Configuration
    npm_registry_url: str = "https://registry.npmjs.org"

    # OpenRouter API Configuration
    openrouter_api_key: str = ""
    openrouter_model: str = "anthropic/claude-sonnet-4"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Gmail SMTP Configuration
    gmail_user: str = ""
    gmail_app_password: str = ""

    # Recipient Configuration
    recipient_email: str = ""

    # Repository list
    repos_config_path: str = "./repos.yaml"
    repositories: List[str] = field(default_factory=list)

    # Informational only; scheduling is done by the external trigger
    schedule: Dict[str, Any] = field(default_factory=dict)
    notification: Dict[str, Any] = field(default_factory=dict)

    # Report Configuration
    outdated_preview_limit: int = 10

    # HTTP Configuration (None = transport default, no timeout)
    request_timeout_seconds: Optional[float] = None

    # Logging Configuration
    log_level: str = "INFO"

    # Settings that could not be parsed, reported by validate_config()
    load_errors: List[str] = field(default_factory=list)

    @property
    def targets(self) -> List[RepositoryTarget]:
        """Configured repositories as parsed targets, in configuration order."""
        return [RepositoryTarget.parse(repo) for repo in self.repositories]


def _find_env_file() -> Optional[Path]:
    """Look for a .env file in the current directory, then its parents."""
    env_file = Path(".env")
    if env_file.exists():
        return env_file
    for parent in Path.cwd().parents:
        env_file = parent / ".env"
        if env_file.exists():
            return env_file
    return None


def _parse_number(name: str, default, cast, errors: List[str]):
    """Read a numeric setting, recording a message instead of raising."""
    value = os.getenv(name, "")
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        errors.append(f"{name} must be a number, got {value!r}")
        return default


def load_config(env_path: Optional[str] = None) -> Config:
    """
    Load configuration from environment variables and optional .env file.

    Args:
        env_path: Optional path to .env file. If not provided, searches
                  current directory and parent directories.

    Returns:
        Config object with loaded values. Call validate_config() before use.
    """
    env_file = Path(env_path) if env_path else _find_env_file()
    if env_file is not None:
        load_dotenv(env_file)

    load_errors: List[str] = []

    config = Config(
        # GitHub
        github_token=os.getenv("GH_TOKEN", ""),
        github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),

        # npm
        npm_registry_url=os.getenv("NPM_REGISTRY_URL", "https://registry.npmjs.org"),

        # OpenRouter
        openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
        openrouter_model=os.getenv("OPENROUTER_MODEL", "anthropic/claude-sonnet-4"),

        # Gmail
        gmail_user=os.getenv("GMAIL_USER", ""),
        gmail_app_password=os.getenv("GMAIL_APP_PASSWORD", ""),

        # Recipient
        recipient_email=os.getenv("RECIPIENT_EMAIL", ""),

        # Repositories
        repos_config_path=os.getenv("REPOS_CONFIG_PATH", "./repos.yaml"),

        # Report
        outdated_preview_limit=_parse_number("OUTDATED_PREVIEW_LIMIT", 10, int, load_errors),

        # HTTP
        request_timeout_seconds=_parse_number("REQUEST_TIMEOUT_SECONDS", None, float, load_errors),

        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO"),

        load_errors=load_errors,
    )

    data = load_repository_config(config.repos_config_path)
    config.repositories = [str(repo) for repo in data.get("repos", [])]
    config.schedule = data.get("schedule") or {}
    config.notification = data.get("notification") or {}

    return config


def load_repository_config(config_path: str) -> Dict[str, Any]:
    """
    Load the repository list and metadata from a YAML file.

    Args:
        config_path: Path to repos.yaml.

    Returns:
        Parsed mapping; empty if the file is missing or unreadable.
    """
    repos_path = Path(config_path)

    if not repos_path.exists():
        return {}

    try:
        import yaml

        with open(repos_path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            print(f"Warning: {config_path} must contain a mapping", file=sys.stderr)
            return {}

        return data

    except Exception as e:
        print(f"Warning: Failed to load repositories from {config_path}: {e}", file=sys.stderr)
        print(f"  Error type: {e.__class__.__name__}", file=sys.stderr)
        return {}


def validate_config(config: Config) -> list[str]:
    """
    Validate the settings every run needs before any external call.

    The AI key and mail credentials are checked later, on the paths
    that actually use them.

    Args:
        config: Configuration object to validate.

    Returns:
        List of validation error messages. Empty if valid.
    """
    errors = list(config.load_errors)

    if not config.github_token:
        errors.append("GH_TOKEN is required")

    if not config.repositories:
        errors.append(f"No repositories configured (check {config.repos_config_path})")
    for repo in config.repositories:
        try:
            RepositoryTarget.parse(repo)
        except ValueError as e:
            errors.append(str(e))

    # Validate email format (basic check)
    if config.gmail_user and "@" not in config.gmail_user:
        errors.append("GMAIL_USER must be a valid email address")
    if config.recipient_email and "@" not in config.recipient_email:
        errors.append("RECIPIENT_EMAIL must be a valid email address")

    if config.outdated_preview_limit < 1:
        errors.append("OUTDATED_PREVIEW_LIMIT must be at least 1")
    if config.request_timeout_seconds is not None and config.request_timeout_seconds <= 0:
        errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

    return errors
