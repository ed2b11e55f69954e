"""Tests for src.metafetch.models value types."""

import dataclasses

import pytest

from src.metafetch.models import (
    CommitRecord,
    CommitSignature,
    FetchRequest,
    Page,
    PullRequestRecord,
)


def test_fetch_request_method_follows_body():
    assert FetchRequest("url").method == "GET"
    assert FetchRequest("url", body={}).method == "POST"


def test_records_are_immutable():
    record = PullRequestRecord(author_login="alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.author_login = "bob"


def test_commit_record_rest_shape():
    record = CommitRecord(
        sha="abc",
        author=CommitSignature(date="2024-01-01T00:00:00Z", login="dev"),
        committer=CommitSignature(date="2024-01-02T00:00:00Z", login=None),
    )
    assert record.to_dict() == {
        "sha": "abc",
        "commit": {
            "author": {"date": "2024-01-01T00:00:00Z"},
            "committer": {"date": "2024-01-02T00:00:00Z"},
        },
        "author": {"login": "dev"},
        "committer": {"login": None},
    }


def test_page_iteration_and_flags():
    page = Page(records=(PullRequestRecord("a"), PullRequestRecord(None)), next_cursor="xyz")
    assert len(page) == 2
    assert [pr.author_login for pr in page] == ["a", None]
    assert page.has_more
    assert page.to_dicts()[0]["user"] == {"login": "a"}
    assert not Page().has_more
