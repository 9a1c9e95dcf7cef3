"""Tests for configuration loading and validation."""

from depwatch.config import Config, load_config, load_repository_config, validate_config

ENV_VARS = [
    "GH_TOKEN", "GITHUB_API_URL", "NPM_REGISTRY_URL", "OPENROUTER_API_KEY", "OPENROUTER_MODEL",
    "GMAIL_USER", "GMAIL_APP_PASSWORD", "RECIPIENT_EMAIL", "REPOS_CONFIG_PATH",
    "OUTDATED_PREVIEW_LIMIT", "REQUEST_TIMEOUT_SECONDS", "LOG_LEVEL",
]


def clear_env(monkeypatch):
    # setenv first so teardown also removes values written by load_dotenv
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def write_repos(tmp_path, text):
    path = tmp_path / "repos.yaml"
    path.write_text(text)
    return path


def test_load_config_from_env_and_yaml(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    repos = write_repos(tmp_path, (
        "repos:\n"
        "  - octo-org/web\n"
        "  - octo-org/api\n"
        "schedule:\n"
        "  cron: '0 9 1 * *'\n"
        "notification:\n"
        "  channel: email\n"
    ))
    env_file = tmp_path / ".env"
    env_file.write_text("GH_TOKEN=ghp_fromfile\nREQUEST_TIMEOUT_SECONDS=30\n")
    monkeypatch.setenv("REPOS_CONFIG_PATH", str(repos))
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-env")
    monkeypatch.setenv("OUTDATED_PREVIEW_LIMIT", "5")

    config = load_config(str(env_file))

    assert config.github_token == "ghp_fromfile"
    assert config.openrouter_api_key == "sk-or-env"
    assert config.repositories == ["octo-org/web", "octo-org/api"]
    assert [t.full_name for t in config.targets] == ["octo-org/web", "octo-org/api"]
    assert config.schedule == {"cron": "0 9 1 * *"}
    assert config.notification == {"channel": "email"}
    assert config.outdated_preview_limit == 5
    assert config.request_timeout_seconds == 30.0


def test_defaults(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPOS_CONFIG_PATH", str(tmp_path / "missing.yaml"))

    config = load_config(str(tmp_path / "no.env"))

    assert config.repositories == []
    assert config.request_timeout_seconds is None
    assert config.outdated_preview_limit == 10
    assert config.github_api_url == "https://api.github.com"
    assert config.npm_registry_url == "https://registry.npmjs.org"


def test_load_repository_config_missing_file(tmp_path):
    assert load_repository_config(str(tmp_path / "nope.yaml")) == {}


def test_load_repository_config_not_a_mapping(tmp_path):
    path = write_repos(tmp_path, "- octo-org/web\n")
    assert load_repository_config(str(path)) == {}


def test_load_repository_config_invalid_yaml(tmp_path):
    path = write_repos(tmp_path, "repos: [unclosed\n")
    assert load_repository_config(str(path)) == {}


def test_validate_config_ok(config):
    assert validate_config(config) == []


def test_validate_config_requires_token():
    config = Config(repositories=["octo-org/app"])
    assert "GH_TOKEN is required" in validate_config(config)


def test_validate_config_optional_credentials():
    # AI key and mail credentials are only needed later in the run
    config = Config(github_token="ghp_x", repositories=["octo-org/app"])
    assert validate_config(config) == []


def test_validate_config_repositories():
    errors = validate_config(Config(github_token="ghp_x"))
    assert any("No repositories configured" in e for e in errors)

    errors = validate_config(Config(github_token="ghp_x", repositories=["octo-org/app", "just-a-name"]))
    assert len(errors) == 1
    assert "just-a-name" in errors[0]


def test_validate_config_emails_and_numbers():
    config = Config(
        github_token="ghp_x",
        repositories=["octo-org/app"],
        gmail_user="not-an-email",
        recipient_email="also-not",
        outdated_preview_limit=0,
        request_timeout_seconds=-1,
    )
    errors = validate_config(config)
    assert "GMAIL_USER must be a valid email address" in errors
    assert "RECIPIENT_EMAIL must be a valid email address" in errors
    assert "OUTDATED_PREVIEW_LIMIT must be at least 1" in errors
    assert "REQUEST_TIMEOUT_SECONDS must be positive" in errors


def test_unparseable_numbers_reported_by_validation(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    repos = write_repos(tmp_path, "repos:\n  - octo-org/web\n")
    monkeypatch.setenv("REPOS_CONFIG_PATH", str(repos))
    monkeypatch.setenv("GH_TOKEN", "ghp_x")
    monkeypatch.setenv("OUTDATED_PREVIEW_LIMIT", "ten")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "soon")

    config = load_config(str(tmp_path / "no.env"))

    assert config.outdated_preview_limit == 10
    assert config.request_timeout_seconds is None
    assert validate_config(config) == [
        "OUTDATED_PREVIEW_LIMIT must be a number, got 'ten'",
        "REQUEST_TIMEOUT_SECONDS must be a number, got 'soon'",
    ]
