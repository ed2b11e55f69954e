"""Tests for src.metafetch.runner ensuring pagination is driven through the adapter.

Run with:
    pytest tests/test_runner.py --maxfail=1 -v --cov=src.metafetch.runner --cov-report=term-missing
"""

from unittest.mock import MagicMock, patch

import pytest

from src.metafetch import runner
from src.metafetch.errors import FetchFailure
from src.metafetch.graph_adapter import map_repository
from src.metafetch.models import AcceptedStatus, Page

REPO_NODE = {
    "name": "Hello-World",
    "nameWithOwner": "octocat/Hello-World",
    "owner": {"login": "octocat"},
    "url": "https://github.com/octocat/Hello-World",
    "stargazers": {"totalCount": 42},
    "defaultBranchRef": {"name": "master"},
    "languages": {
        "edges": [
            {"size": 10, "node": {"name": "Shell", "color": None}},
            {"size": 20, "node": {"name": "Ruby", "color": None}},
        ]
    },
}


def test_collect_pages_feeds_cursor_forward():
    calls = []
    pages = [
        Page(records=tuple(range(100)), next_cursor="c1"),
        Page(records=(100, 101), next_cursor="c2"),
    ]

    def fetch_page(page, cursor):
        calls.append((page, cursor))
        return pages[page - 1]

    results = runner.collect_pages(fetch_page)
    assert len(results) == 102
    assert calls == [(1, None), (2, "c1")]


def test_collect_pages_respects_max_pages():
    fetch_page = MagicMock(return_value=Page(records=tuple(range(100)), next_cursor="c"))
    results = runner.collect_pages(fetch_page, max_pages=2)
    assert len(results) == 200
    assert fetch_page.call_count == 2


def test_collect_pages_stops_on_accepted_status(capsys):
    results = runner.collect_pages(lambda page, cursor: AcceptedStatus(404))
    assert results == []
    assert "HTTP 404" in capsys.readouterr().out


@patch("src.metafetch.runner.pull_requests", return_value=Page(records=("pr",), next_cursor="p"))
@patch("src.metafetch.runner.commits", return_value=Page(records=("c1", "c2"), next_cursor="c"))
@patch("src.metafetch.runner.repository", return_value=map_repository(REPO_NODE))
def test_process_repo_summarizes(mock_repo, mock_commits, mock_prs):
    summary = runner.process_repo("octocat/Hello-World")
    assert summary == {
        "repo_name": "octocat/Hello-World",
        "default_branch": "master",
        "stargazers_count": 42,
        "languages": ["Ruby", "Shell"],
        "commits": 2,
        "pull_requests": 1,
    }
    assert mock_commits.call_args.kwargs["branch"] == "master"
    assert mock_commits.call_args.kwargs["page"] == 1


@patch("src.metafetch.runner.commits")
@patch("src.metafetch.runner.repository", return_value=AcceptedStatus(404))
def test_process_repo_skips_missing_repo(mock_repo, mock_commits):
    assert runner.process_repo("o/missing") == {"repo_name": "o/missing", "status": 404}
    mock_commits.assert_not_called()


def test_main_uses_custom_repos(monkeypatch):
    called = []
    monkeypatch.setattr(runner, "process_repo", lambda repo, **_: called.append(repo))
    runner.main(["x/y"])
    assert called == ["x/y"]


def test_main_reports_failures_and_continues(monkeypatch, capsys):
    called = []

    def fake_process(repo, **_):
        called.append(repo)
        if repo == "bad/repo":
            raise FetchFailure(401, {"message": "Bad credentials"})

    monkeypatch.setattr(runner, "process_repo", fake_process)
    runner.main(["bad/repo", "good/repo"])
    assert called == ["bad/repo", "good/repo"]
    assert "[error] bad/repo: HTTP 401" in capsys.readouterr().out


def test_main_exits_when_no_repos(monkeypatch):
    monkeypatch.setattr(runner, "process_repo", lambda repo, **_: None)
    monkeypatch.setattr(runner, "REPOS", [])
    with pytest.raises(SystemExit) as excinfo:
        runner.main(None)
    assert excinfo.value.code == 1
