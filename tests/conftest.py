"""Shared fixtures; tests never touch the network."""

import pytest
import requests

from depwatch.config import Config
from depwatch.delivery import email as email_module
from helpers import FakeSMTP


@pytest.fixture
def config():
    return Config(
        github_token="ghp_testtoken123456",
        openrouter_api_key="sk-or-test",
        gmail_user="monitor@example.com",
        gmail_app_password="app-password",
        recipient_email="team@example.com",
        repositories=["octo-org/app"],
    )


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    yield FakeSMTP
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None


@pytest.fixture
def network_error():
    return requests.ConnectionError("connection refused")
