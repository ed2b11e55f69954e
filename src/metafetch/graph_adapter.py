"""GraphQL-backed fetchers that return REST-shaped repository, commit and PR records."""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .config import BASE_URL, GRAPH_PAGE_SIZE, GRAPHQL_URL, CredentialHints
from .errors import FetchFailure, GraphQLError, MalformedResponse, MissingCursorError
from .http_client import fetch, report_failure
from .models import (
    AcceptedStatus,
    CommitRecord,
    CommitSignature,
    FetchRequest,
    LanguageShare,
    LicenseInfo,
    Page,
    ProgressIndicator,
    PullRequestRecord,
    RepositoryRecord,
)

NOT_FOUND_STATUS = 404

REPO_QUERY = """
query Repository($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    name
    nameWithOwner
    isPrivate
    owner { login }
    url
    description
    isFork
    createdAt
    updatedAt
    pushedAt
    homepageUrl
    diskUsage
    stargazers { totalCount }
    primaryLanguage { name }
    mirrorUrl
    isArchived
    licenseInfo {
      key
      name
      spdxId
      url
      id
    }
    defaultBranchRef { name }
    languages(first: 100) {
      edges {
        size
        node {
          color
          name
        }
      }
    }
  }
}
"""

_HISTORY_SELECTION = """
      target {
        ... on Commit {
          history(since: $since, first: $first, after: $cursor) {
            edges {
              cursor
              node {
                oid
                author {
                  date
                  user { login }
                }
                committer {
                  date
                  user { login }
                }
              }
            }
          }
        }
      }
"""

COMMITS_QUERY_DEFAULT_BRANCH = (
    "query CommitsOnDefaultBranch($owner: String!, $name: String!, $first: Int!, "
    "$cursor: String, $since: GitTimestamp) {\n"
    "  repository(owner: $owner, name: $name) {\n"
    "    defaultBranchRef {"
    + _HISTORY_SELECTION
    + "    }\n  }\n}\n"
)

COMMITS_QUERY_BY_REF = (
    "query CommitsOnRef($owner: String!, $name: String!, $qualified: String!, $first: Int!, "
    "$cursor: String, $since: GitTimestamp) {\n"
    "  repository(owner: $owner, name: $name) {\n"
    "    ref(qualifiedName: $qualified) {"
    + _HISTORY_SELECTION
    + "    }\n  }\n}\n"
)

PULL_REQUESTS_QUERY = """
query PullRequests($owner: String!, $name: String!, $first: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: $first, orderBy: {field: CREATED_AT, direction: DESC}, after: $cursor) {
      edges {
        cursor
        node {
          createdAt
          author { login }
        }
      }
    }
  }
}
"""


def coerce_date(value: Optional[str]) -> Optional[str]:
    """Normalize a GitHub timestamp to `YYYY-MM-DDTHH:MM:SSZ` in UTC."""
    if not value:
        return None
    parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_since(value: Union[str, dt.datetime, None]) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return coerce_date(value)


def page_size(per_page: Optional[int]) -> int:
    """Clamp a requested page size to what the GraphQL endpoint accepts."""
    if not per_page or per_page < 1:
        return GRAPH_PAGE_SIZE
    return min(int(per_page), GRAPH_PAGE_SIZE)


def _is_first_page(page: Optional[float]) -> bool:
    if page is None:
        return True
    if isinstance(page, float) and math.isnan(page):
        return True
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    return page == 1


def build_repo_variables(repo_full_name: str,
                         page: Optional[float] = None,
                         cursor: Optional[str] = None) -> Dict[str, Any]:
    """Split `owner/name` into GraphQL variables and attach the cursor for later pages."""
    owner, sep, name = (repo_full_name or "").strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"expected 'owner/name', got {repo_full_name!r}")

    variables: Dict[str, Any] = {"owner": owner, "name": name}
    if _is_first_page(page):
        return variables

    if cursor is None:
        raise MissingCursorError(f"page {page} of {repo_full_name} requested without a cursor")

    variables["cursor"] = cursor
    return variables


def _graph_request(query: str,
                   variables: Dict[str, Any],
                   accepted_error_codes: Sequence[int]) -> FetchRequest:
    return FetchRequest(
        url=GRAPHQL_URL,
        body={"query": query, "variables": variables},
        accepted_error_codes=tuple(accepted_error_codes or ()),
    )


def graph_payload(data: Any) -> Dict[str, Any]:
    """Return the decoded GraphQL body, which must be a JSON object."""
    if not isinstance(data, dict):
        raise MalformedResponse(200, repr(data)[:300], GRAPHQL_URL)
    return data


def raise_for_graph_errors(payload: Dict[str, Any],
                           accepted_error_codes: Sequence[int],
                           progress: Optional[ProgressIndicator] = None,
                           hints: Optional[CredentialHints] = None,
                           has_data: bool = False) -> Optional[AcceptedStatus]:
    """Translate a GraphQL `errors` list the way a REST status would be handled.

    NOT_FOUND becomes a 404: returned as AcceptedStatus when the caller accepts it,
    otherwise raised as FetchFailure. Other error types are only logged when the
    response still carries `data.repository` (`has_data`); without it they raise
    GraphQLError.
    """
    errors = payload.get("errors")
    if not errors:
        return None

    first = errors[0] if isinstance(errors[0], dict) else {}
    if first.get("type") == "NOT_FOUND":
        if NOT_FOUND_STATUS in accepted_error_codes:
            return AcceptedStatus(NOT_FOUND_STATUS)
        report_failure(NOT_FOUND_STATUS, GRAPHQL_URL, errors, progress, hints)
        raise FetchFailure(NOT_FOUND_STATUS, payload, GRAPHQL_URL)

    if has_data:
        print(f"[warn] partial GraphQL response: {GraphQLError(errors)}")
        return None
    raise GraphQLError(errors)


def _repository_node(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return (payload.get("data") or {}).get("repository")


def _checked_repository_node(payload: Dict[str, Any],
                             accepted_error_codes: Sequence[int],
                             progress: Optional[ProgressIndicator],
                             hints: Optional[CredentialHints]) -> Union[Dict[str, Any], AcceptedStatus, None]:
    """Return `data.repository`, or the AcceptedStatus its errors translate to."""
    node = _repository_node(payload)
    accepted = raise_for_graph_errors(payload, accepted_error_codes, progress, hints, has_data=node is not None)
    if accepted is not None:
        return accepted
    return node


def _login(actor: Optional[Dict[str, Any]]) -> Optional[str]:
    return actor.get("login") if actor else None


def map_repository(r: Dict[str, Any]) -> RepositoryRecord:
    """Map the `repository` node of REPO_QUERY onto a RepositoryRecord."""
    full_name = r["nameWithOwner"]
    api_url = f"{BASE_URL}/repos/{full_name}"

    license_info = None
    if r.get("licenseInfo"):
        lic = r["licenseInfo"]
        license_info = LicenseInfo(
            key=lic.get("key"),
            name=lic.get("name"),
            spdx_id=lic.get("spdxId"),
            url=lic.get("url"),
            node_id=lic.get("id"),
        )

    languages: Dict[str, LanguageShare] = {}
    for edge in ((r.get("languages") or {}).get("edges") or []):
        node = edge.get("node") or {}
        languages[node["name"]] = LanguageShare(bytes=edge.get("size"), color=node.get("color"))

    return RepositoryRecord(
        name=r["name"],
        full_name=full_name,
        private=bool(r.get("isPrivate")),
        owner=_login(r.get("owner")),
        html_url=r.get("url"),
        description=r.get("description"),
        fork=bool(r.get("isFork")),
        url=api_url,
        languages_url=f"{api_url}/languages",
        pulls_url=f"{api_url}/pulls{{/number}}",
        created_at=coerce_date(r.get("createdAt")),
        updated_at=coerce_date(r.get("updatedAt")),
        pushed_at=coerce_date(r.get("pushedAt")),
        homepage=r.get("homepageUrl"),
        size=r.get("diskUsage"),
        stargazers_count=(r.get("stargazers") or {}).get("totalCount", 0),
        language=(r.get("primaryLanguage") or {}).get("name"),
        mirror_url=r.get("mirrorUrl"),
        archived=bool(r.get("isArchived")),
        default_branch=(r.get("defaultBranchRef") or {}).get("name"),
        license=license_info,
        languages=languages,
    )


def map_commit_edge(edge: Dict[str, Any]) -> CommitRecord:
    node = edge["node"]
    author = node.get("author") or {}
    committer = node.get("committer") or {}
    return CommitRecord(
        sha=node["oid"],
        author=CommitSignature(date=coerce_date(author.get("date")), login=_login(author.get("user"))),
        committer=CommitSignature(date=coerce_date(committer.get("date")), login=_login(committer.get("user"))),
    )


def map_pull_request_edge(edge: Dict[str, Any]) -> PullRequestRecord:
    node = edge["node"]
    return PullRequestRecord(
        author_login=_login(node.get("author")),
        created_at=coerce_date(node.get("createdAt")),
    )


def next_cursor(edges: List[Dict[str, Any]]) -> Optional[str]:
    """Return the last edge's cursor, or None when the page is empty."""
    if not edges:
        return None
    return edges[-1].get("cursor")


def repository(progress: Optional[ProgressIndicator],
               accepted_error_codes: Sequence[int],
               repo_full_name: str,
               *,
               session: Optional[requests.Session] = None,
               hints: Optional[CredentialHints] = None) -> Union[RepositoryRecord, AcceptedStatus]:
    """Fetch a repository descriptor."""
    request = _graph_request(REPO_QUERY, build_repo_variables(repo_full_name), accepted_error_codes)
    outcome = fetch(request, session=session, progress=progress, hints=hints)
    if isinstance(outcome, AcceptedStatus):
        return outcome

    payload = graph_payload(outcome.data)
    node = _checked_repository_node(payload, request.accepted_error_codes, progress, hints)
    if isinstance(node, AcceptedStatus):
        return node
    if node is None:
        return raise_for_graph_errors(
            {"errors": [{"type": "NOT_FOUND", "message": f"{repo_full_name} not found"}]},
            request.accepted_error_codes,
            progress,
            hints,
        )
    return map_repository(node)


def commits(progress: Optional[ProgressIndicator],
            accepted_error_codes: Sequence[int],
            repo_full_name: str,
            since: Union[str, dt.datetime, None] = None,
            page: Optional[float] = 1,
            per_page: Optional[int] = GRAPH_PAGE_SIZE,
            cursor: Optional[str] = None,
            *,
            branch: Optional[str] = None,
            session: Optional[requests.Session] = None,
            hints: Optional[CredentialHints] = None) -> Union[Page[CommitRecord], AcceptedStatus]:
    """Fetch one page of commit history, newest first.

    `branch` selects the ref; when omitted the repository's default branch is used.
    """
    variables = build_repo_variables(repo_full_name, page, cursor)
    variables["first"] = page_size(per_page)
    variables["since"] = format_since(since)
    if branch:
        variables["qualified"] = branch if branch.startswith("refs/") else f"refs/heads/{branch}"
        query = COMMITS_QUERY_BY_REF
    else:
        query = COMMITS_QUERY_DEFAULT_BRANCH

    request = _graph_request(query, variables, accepted_error_codes)
    outcome = fetch(request, session=session, progress=progress, hints=hints)
    if isinstance(outcome, AcceptedStatus):
        return outcome

    payload = graph_payload(outcome.data)
    repo_node = _checked_repository_node(payload, request.accepted_error_codes, progress, hints)
    if isinstance(repo_node, AcceptedStatus):
        return repo_node

    repo_node = repo_node or {}
    ref =repo_node.get("ref") if branch else repo_node.get("defaultBranchRef")
    history = ((ref or {}).get("target") or {}).get("history") or {}
    edges = history.get("edges") or []

    records = tuple(map_commit_edge(edge) for edge in edges)
    return Page(records=records, next_cursor=next_cursor(edges))


def pull_requests(progress: Optional[ProgressIndicator],
                  accepted_error_codes: Sequence[int],
                  repo_full_name: str,
                  page: Optional[float] = 1,
                  per_page: Optional[int] = GRAPH_PAGE_SIZE,
                  cursor: Optional[str] = None,
                  *,
                  session: Optional[requests.Session] = None,
                  hints: Optional[CredentialHints] = None) -> Union[Page[PullRequestRecord], AcceptedStatus]:
    """Fetch one page of pull requests ordered by creation time, newest first."""
    variables = build_repo_variables(repo_full_name, page, cursor)
    variables["first"] = page_size(per_page)

    request = _graph_request(PULL_REQUESTS_QUERY, variables, accepted_error_codes)
    outcome = fetch(request, session=session, progress=progress, hints=hints)
    if isinstance(outcome, AcceptedStatus):
        return outcome

    payload = graph_payload(outcome.data)
    repo_node = _checked_repository_node(payload, request.accepted_error_codes, progress, hints)
    if isinstance(repo_node, AcceptedStatus):
        return repo_node

    repo_node = repo_node or {}
    edges =((repo_node.get("pullRequests") or {}).get("edges")) or []

    records = tuple(map_pull_request_edge(edge) for edge in edges)
    return Page(records=records, next_cursor=next_cursor(edges))


def repo_languages(*_args: Any, **_kwargs: Any) -> None:
    """Languages arrive with repository(); there is no separate GraphQL call."""
    raise NotImplementedError("repository languages are returned by repository()")


__all__ = [
    "REPO_QUERY",
    "COMMITS_QUERY_DEFAULT_BRANCH",
    "COMMITS_QUERY_BY_REF",
    "PULL_REQUESTS_QUERY",
    "coerce_date",
    "format_since",
    "page_size",
    "build_repo_variables",
    "graph_payload",
    "raise_for_graph_errors",
    "map_repository",
    "map_commit_edge",
    "map_pull_request_edge",
    "next_cursor",
    "repository",
    "commits",
    "pull_requests",
    "repo_languages",
]
