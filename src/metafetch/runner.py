"""Entry points that walk repository metadata, commits and pull requests page by page."""

from __future__ import annotations

import os
import sys
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import GRAPH_PAGE_SIZE, MAX_PAGES_COMMITS, MAX_PAGES_PRS, REPOS, CredentialHints
from .errors import MetafetchError
from .graph_adapter import commits, pull_requests, repository
from .http_client import build_session
from .models import AcceptedStatus


def collect_pages(fetch_page: Callable[..., Any], max_pages: int = 0) -> List[Any]:
    """Call `fetch_page(page, cursor)` until a short or empty page, or max_pages hits."""
    results: List[Any] = []
    page = 1
    cursor: Optional[str] = None
    while True:
        if max_pages and page > max_pages:
            break
        batch = fetch_page(page, cursor)
        if isinstance(batch, AcceptedStatus):
            print(f"[warn] page {page} -> HTTP {batch.code}")
            break

        results.extend(batch.records)
        if not batch.has_more or len(batch) < GRAPH_PAGE_SIZE:
            break

        cursor = batch.next_cursor
        page += 1
    return results


def process_repo(full_name: str,
                 session: Optional[requests.Session] = None,
                 hints: Optional[CredentialHints] = None) -> Dict[str, Any]:
    """Fetch the descriptor, commits and pull requests of `owner/repo` and summarize them."""
    print(f"\n=== {full_name} ===")

    print("  fetching repo metadata...")
    meta = repository(None, [404], full_name, session=session, hints=hints)
    if isinstance(meta, AcceptedStatus):
        print(f"[warn] {full_name} not found (HTTP {meta.code}); skipping")
        return {"repo_name": full_name, "status": meta.code}

    print("  fetching commits...")
    repo_commits = collect_pages(
        lambda page, cursor: commits(
            None, [404], full_name,
            page=page, cursor=cursor, branch=meta.default_branch,
            session=session, hints=hints,
        ),
        max_pages=MAX_PAGES_COMMITS,
    )

    print("  fetching pull requests...")
    prs = collect_pages(
        lambda page, cursor: pull_requests(
            None, [404], full_name,
            page=page, cursor=cursor,
            session=session, hints=hints,
        ),
        max_pages=MAX_PAGES_PRS,
    )

    summary = {
        "repo_name": meta.full_name,
        "default_branch": meta.default_branch,
        "stargazers_count": meta.stargazers_count,
        "languages": sorted(meta.languages),
        "commits": len(repo_commits),
        "pull_requests": len(prs),
    }
    print(f"    DONE -> {summary['commits']} commits, {summary['pull_requests']} pull requests")
    return summary


def main(custom_repos: Optional[List[str]] = None) -> None:
    """Entry point used by both CLI and imports; accepts optional repo overrides."""
    repos = custom_repos or REPOS
    if not repos:
        print("No repositories specified. Provide CLI args or edit REPOS in the file.")
        sys.exit(1)

    session = build_session(os.getenv("GITHUB_TOKEN"))
    hints = CredentialHints.from_environment()
    print(f"Processing {len(repos)} repos...")
    for repo in repos:
        try:
            process_repo(repo.strip(), session=session, hints=hints)
        except (MetafetchError, ValueError) as exc:
            print(f"[error] {repo}: {exc}")
    print("\nAll repositories processed.")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        main([arg for arg in sys.argv[1:] if "/" in arg])
    else:
        main()
