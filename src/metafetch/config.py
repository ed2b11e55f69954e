"""Central configuration constants for the repository metadata fetch core."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

USER_AGENT = "metafetch-github-core/1.0"
BASE_URL = "https://api.github.com"
GRAPHQL_URL = "https://api.github.com/graphql"
TRANSIENT_STATUS_CODES = frozenset({500, 502, 504, 522, 525})
MAX_RETRIES = max(1, int(os.getenv("METAFETCH_MAX_RETRIES", "6")))
BACKOFF_BASE_SEC = float(os.getenv("METAFETCH_BACKOFF_BASE_SEC", "2"))
REQUEST_TIMEOUT = int(os.getenv("METAFETCH_REQUEST_TIMEOUT", "90"))
GRAPH_PAGE_SIZE = 100  # upstream maximum for `first:`
MAX_PAGES_COMMITS = int(os.getenv("MAX_PAGES_COMMITS", "3"))  # 0 = no cap
MAX_PAGES_PRS = int(os.getenv("MAX_PAGES_PRS", "3"))  # 0 = no cap

REPOS = [
    "octocat/Hello-World",
    # "micromatch/micromatch",
    # "pandas-dev/pandas",
]


@dataclass(frozen=True)
class CredentialHints:
    """Names of identity variables a caller expects, used only for diagnostics."""

    expected_variables: Tuple[str, ...] = ("GITHUB_TOKEN",)
    environ: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environment(cls, expected_variables: Optional[Tuple[str, ...]] = None) -> "CredentialHints":
        """Snapshot the current process environment."""
        if expected_variables is None:
            return cls(environ=dict(os.environ))
        return cls(expected_variables=tuple(expected_variables), environ=dict(os.environ))

    def first_missing(self) -> Optional[str]:
        for name in self.expected_variables:
            if not self.environ.get(name):
                return name
        return None


__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "GRAPHQL_URL",
    "TRANSIENT_STATUS_CODES",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
    "REQUEST_TIMEOUT",
    "GRAPH_PAGE_SIZE",
    "MAX_PAGES_COMMITS",
    "MAX_PAGES_PRS",
    "REPOS",
    "CredentialHints",
]
