"""Failure types raised by the fetcher and the GraphQL adapter."""

from __future__ import annotations

from typing import Any, List, Optional


class MetafetchError(RuntimeError):
    """Base class for every failure surfaced by this package."""


class FetchError(MetafetchError):
    """A fetch that produced neither a 2xx body nor an accepted status."""

    status: Optional[int] = None


class FetchFailure(FetchError):
    """The remote answered with a status the caller did not accept."""

    def __init__(self, status: int, body: Any = None, url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status} for {url}" if url else f"HTTP {status}")
        self.status = status
        self.body = body
        self.url = url


class TransportExhausted(FetchError):
    """Retries ran out on a transport-level error; no HTTP status is available."""

    def __init__(self, error: BaseException, url: Optional[str] = None) -> None:
        super().__init__(f"transport failed after retries for {url}: {error}")
        self.status = None
        self.error = error
        self.url = url


class MalformedResponse(FetchError):
    """A 2xx response whose body could not be decoded as JSON."""

    def __init__(self, status: int, text: str, url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status} for {url} returned a non-JSON body")
        self.status = status
        self.text = text
        self.url = url


class GraphQLError(MetafetchError):
    """A GraphQL response carried errors of an unrecognised type."""

    def __init__(self, errors: List[Any]) -> None:
        messages = ", ".join(
            [str(err.get("message")) for err in errors if isinstance(err, dict)]
        )
        super().__init__(f"GraphQL error: {messages or errors}")
        self.errors = errors


class MissingCursorError(ValueError):
    """A page beyond the first was requested without a continuation cursor."""


__all__ = [
    "MetafetchError",
    "FetchError",
    "FetchFailure",
    "TransportExhausted",
    "MalformedResponse",
    "GraphQLError",
    "MissingCursorError",
]
