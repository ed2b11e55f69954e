"""Value types shared by the fetcher and the GraphQL adapter.

Records mirror the shape the REST endpoints return, so `to_dict()` output can be
consumed without knowing which endpoint served it.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, Protocol, Tuple, TypeVar


class ProgressIndicator(Protocol):
    """Anything that can be told the current operation failed (e.g. a spinner)."""

    def fail(self) -> Any:
        ...


@dataclass(frozen=True)
class FetchRequest:
    url: str
    body: Optional[Dict[str, Any]] = None
    if_modified_since: Optional[dt.datetime] = None
    accepted_error_codes: Tuple[int, ...] = ()

    @property
    def method(self) -> str:
        return "POST" if self.body is not None else "GET"


@dataclass(frozen=True)
class Success:
    data: Any


@dataclass(frozen=True)
class AcceptedStatus:
    """A non-2xx status the caller declared acceptable for this call."""

    code: int


@dataclass(frozen=True)
class LicenseInfo:
    key: Optional[str]
    name: Optional[str]
    spdx_id: Optional[str]
    url: Optional[str]
    node_id: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "spdx_id": self.spdx_id,
            "url": self.url,
            "node_id": self.node_id,
        }


@dataclass(frozen=True)
class LanguageShare:
    bytes: int
    color: Optional[str]


@dataclass(frozen=True)
class RepositoryRecord:
    name: str
    full_name: str
    private: bool
    owner: str
    html_url: str
    description: Optional[str]
    fork: bool
    url: str
    languages_url: str
    pulls_url: str
    created_at: Optional[str]
    updated_at: Optional[str]
    pushed_at: Optional[str]
    homepage: Optional[str]
    size: Optional[int]
    stargazers_count: int
    language: Optional[str]
    mirror_url: Optional[str]
    archived: bool
    default_branch: Optional[str]
    license: Optional[LicenseInfo] = None
    languages: Dict[str, LanguageShare] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the REST-shaped dictionary for this repository."""
        out: Dict[str, Any] = {
            "name": self.name,
            "full_name": self.full_name,
            "private": self.private,
            "owner": self.owner,
            "html_url": self.html_url,
            "description": self.description,
            "fork": self.fork,
            "url": self.url,
            "languages_url": self.languages_url,
            "pulls_url": self.pulls_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "pushed_at": self.pushed_at,
            "homepage": self.homepage,
            "size": self.size,
            "stargazers_count": self.stargazers_count,
            "language": self.language,
            "mirror_url": self.mirror_url,
            "archived": self.archived,
            "default_branch": self.default_branch,
            "languages": {
                lang: {"bytes": share.bytes, "color": share.color}
                for lang, share in self.languages.items()
            },
        }
        if self.license is not None:
            out["license"] = self.license.to_dict()
        return out


@dataclass(frozen=True)
class CommitSignature:
    date: Optional[str]
    login: Optional[str]


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    author: CommitSignature
    committer: CommitSignature

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sha": self.sha,
            "commit": {
                "author": {"date": self.author.date},
                "committer": {"date": self.committer.date},
            },
            "author": {"login": self.author.login},
            "committer": {"login": self.committer.login},
        }


@dataclass(frozen=True)
class PullRequestRecord:
    author_login: Optional[str]
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"user": {"login": self.author_login}, "created_at": self.created_at}


T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of records plus the opaque cursor for the following page."""

    records: Tuple[T, ...] = ()
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records]  # type: ignore[attr-defined]


__all__ = [
    "ProgressIndicator",
    "FetchRequest",
    "Success",
    "AcceptedStatus",
    "LicenseInfo",
    "LanguageShare",
    "RepositoryRecord",
    "CommitSignature",
    "CommitRecord",
    "PullRequestRecord",
    "Page",
]
