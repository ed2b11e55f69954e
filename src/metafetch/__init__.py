"""Resilient GitHub metadata fetching with REST-shaped GraphQL results."""

from .graph_adapter import commits, pull_requests, repository
from .http_client import fetch, fetch_json
from .models import AcceptedStatus, FetchRequest, Page, Success

__all__ = [
    "fetch",
    "fetch_json",
    "repository",
    "commits",
    "pull_requests",
    "AcceptedStatus",
    "FetchRequest",
    "Page",
    "Success",
]
