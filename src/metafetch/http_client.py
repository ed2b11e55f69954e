"""HTTP helpers with retry/backoff logic and outcome classification for JSON fetches."""

from __future__ import annotations

import datetime as dt
import os
import time
from email.utils import format_datetime
from typing import Any, Dict, Optional, Union

import requests

from .config import (
    BACKOFF_BASE_SEC,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    TRANSIENT_STATUS_CODES,
    USER_AGENT,
    CredentialHints,
)
from .errors import FetchFailure, MalformedResponse, TransportExhausted
from .models import AcceptedStatus, FetchRequest, ProgressIndicator, Success

SESSION = requests.Session()
SESSION.headers.update(
    {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
)


def build_session(token: Optional[str] = None) -> requests.Session:
    """Return a session carrying the standard headers and, optionally, a bearer token."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
    )
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def sleep_with_jitter(base: float) -> None:
    """Pause execution with +/- 25% jitter to avoid synchronized retries."""
    jitter = base * 0.25 * (0.5 - (os.urandom(1)[0] / 255.0))
    time.sleep(max(0.0, base + jitter))


def http_date(value: dt.datetime) -> str:
    """Format a datetime as an RFC 7231 HTTP date; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return format_datetime(value.astimezone(dt.timezone.utc), usegmt=True)


def build_headers(request: FetchRequest) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if request.if_modified_since is not None:
        headers["If-Modified-Since"] = http_date(request.if_modified_since)
    if request.body is not None:
        headers["Content-Type"] = "application/json"
    return headers


def log_http_error(status: Optional[int], url: str, body: Any = None) -> None:
    """Print a short, human-readable message for a failed call."""
    label = f"HTTP {status}" if status is not None else "transport failure"
    print(f"[error] {label} for {url}")
    if body is not None:
        print(f"  -> {body}")


def print_credential_hint(hints: Optional[CredentialHints]) -> None:
    if hints is None:
        return
    missing = hints.first_missing()
    if missing:
        print(f"Consider setting the environment variable {missing}.")


def report_failure(status: Optional[int],
                   url: str,
                   body: Any,
                   progress: Optional[ProgressIndicator],
                   hints: Optional[CredentialHints]) -> None:
    """Surface a failure to the progress indicator and the console."""
    if progress is not None:
        progress.fail()
    log_http_error(status, url, body)
    print_credential_hint(hints)


def request_with_backoff(request: FetchRequest,
                         session: Optional[requests.Session] = None) -> requests.Response:
    """Perform the call, retrying transient statuses and transport errors with backoff.

    A transient status on the final attempt is returned like any other response.
    A transport error on the final attempt raises TransportExhausted.
    """
    session = session or SESSION
    headers = build_headers(request)
    last_exc: Optional[requests.RequestException] = None

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            resp = session.request(
                request.method,
                request.url,
                headers=headers,
                json=request.body,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            last_exc = exc
            if attempt < MAX_RETRIES:
                delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                print(f"[retry {attempt}/{MAX_RETRIES}] {exc} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay)
            continue

        if resp.status_code in TRANSIENT_STATUS_CODES and attempt < MAX_RETRIES:
            delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
            print(f"[retry {attempt}/{MAX_RETRIES}] HTTP {resp.status_code} -> sleep {delay:.1f}s")
            sleep_with_jitter(delay)
            continue

        return resp

    raise TransportExhausted(last_exc, request.url) from last_exc


def fetch(request: FetchRequest,
          *,
          session: Optional[requests.Session] = None,
          progress: Optional[ProgressIndicator] = None,
          hints: Optional[CredentialHints] = None) -> Union[Success, AcceptedStatus]:
    """Fetch JSON and classify the outcome.

    Returns Success with the parsed body on 2xx, or AcceptedStatus when the status
    is one of `request.accepted_error_codes`. Raises FetchFailure for any other
    status, TransportExhausted when retries ran out without a response, and
    MalformedResponse when a 2xx body is not JSON.
    """
    try:
        resp = request_with_backoff(request, session)
    except TransportExhausted as exc:
        report_failure(None, request.url, str(exc.error), progress, hints)
        raise

    status = resp.status_code
    if 200 <= status < 300:
        try:
            return Success(resp.json())
        except ValueError as exc:
            raise MalformedResponse(status, (resp.text or "")[:300], request.url) from exc

    if status in request.accepted_error_codes:
        return AcceptedStatus(status)

    try:
        body = resp.json()
    except ValueError:
        body = None

    report_failure(status, request.url, body, progress, hints)
    raise FetchFailure(status, body, request.url)


def fetch_json(request: FetchRequest,
               *,
               session: Optional[requests.Session] = None,
               progress: Optional[ProgressIndicator] = None,
               hints: Optional[CredentialHints] = None) -> Any:
    """Like fetch(), but return the parsed body or the bare accepted status code."""
    outcome = fetch(request, session=session, progress=progress, hints=hints)
    if isinstance(outcome, AcceptedStatus):
        return outcome.code
    return outcome.data


__all__ = [
    "SESSION",
    "build_session",
    "sleep_with_jitter",
    "http_date",
    "build_headers",
    "log_http_error",
    "print_credential_hint",
    "report_failure",
    "request_with_backoff",
    "fetch",
    "fetch_json",
]
