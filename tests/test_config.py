"""Tests for src.metafetch.config ensuring env overrides and defaults work.

Run with coverage to validate configuration handling:
    pytest tests/test_config.py --maxfail=1 -v --cov=src.metafetch.config --cov-report=term-missing
"""

from importlib import reload

import src.metafetch.config as config


def test_config_defaults_are_present():
    assert isinstance(config.REPOS, list) and config.REPOS
    assert config.GRAPH_PAGE_SIZE == 100
    assert config.MAX_RETRIES >= 1
    assert config.TRANSIENT_STATUS_CODES == {500, 502, 504, 522, 525}
    assert config.USER_AGENT.startswith("metafetch")


def test_env_override_for_max_pages(monkeypatch):
    monkeypatch.setenv("MAX_PAGES_COMMITS", "9")
    monkeypatch.setenv("METAFETCH_MAX_RETRIES", "2")
    reloaded = reload(config)
    try:
        assert reloaded.MAX_PAGES_COMMITS == 9
        assert reloaded.MAX_RETRIES == 2
    finally:
        monkeypatch.delenv("MAX_PAGES_COMMITS", raising=False)
        monkeypatch.delenv("METAFETCH_MAX_RETRIES", raising=False)
        reload(config)


def test_credential_hints_first_missing():
    hints = config.CredentialHints(
        expected_variables=("GITHUB_CLIENT_ID", "GITHUB_CLIENT_SECRET"),
        environ={"GITHUB_CLIENT_ID": "id", "GITHUB_CLIENT_SECRET": ""},
    )
    assert hints.first_missing() == "GITHUB_CLIENT_SECRET"
    assert config.CredentialHints(environ={"GITHUB_TOKEN": "t"}).first_missing() is None


def test_credential_hints_from_environment(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    assert config.CredentialHints.from_environment().first_missing() == "GITHUB_TOKEN"
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    assert config.CredentialHints.from_environment(("GITHUB_TOKEN",)).first_missing() is None


def test_max_retries_is_at_least_one(monkeypatch):
    monkeypatch.setenv("METAFETCH_MAX_RETRIES", "0")
    reloaded = reload(config)
    try:
        assert reloaded.MAX_RETRIES == 1
    finally:
        monkeypatch.delenv("METAFETCH_MAX_RETRIES", raising=False)
        reload(config)
