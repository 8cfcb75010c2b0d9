"""
Subscription downloads.

One `fetch` call is one logical request, retried according to a RetryPolicy.
TLS certificates are not verified. Every document goes through the validator
gate before it is promoted.
"""
import logging
import threading
from pathlib import Path
from typing import List, Optional

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from lib.utils import parse_headers

from .constants import BROWSER_HEADERS, CHUNK_SIZE, CONNECT_TIMEOUT, READ_TIMEOUT
from .errors import FetchCancelled, FetchError, FetchRejected
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

urllib3.disable_warnings(InsecureRequestWarning)


def build_session() -> requests.Session:
    """Pooled (keep-alive) session that honours proxy env vars and skips certificate checks"""
    session = requests.Session()
    session.verify = False
    session.trust_env = True
    return session


def build_headers(headers: Optional[List[str]] = None) -> dict[str, str]:
    """Browser-like baseline headers with the caller's `key=value` headers on top"""
    return {**BROWSER_HEADERS, **parse_headers(headers or [])}


class Fetcher:
    """Downloads documents into files with bounded retry and backoff."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        timeout: float = READ_TIMEOUT,
        connect_timeout: float = CONNECT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.session = session or build_session()

    def fetch(
        self,
        method: str,
        url: str,
        headers: Optional[List[str]],
        body: str,
        destination: Path,
        cancel: threading.Event,
        label: str = "",
    ) -> None:
        """
        Download `url` into `destination`.

        `label` prefixes the log lines, usually the subscription name.

        Raises:
            FetchCancelled: `cancel` was set while waiting between attempts
            FetchRejected: The server answered with a non-retryable status
            FetchError: All attempts failed; `destination` may hold a partial file
        """
        method = (method or "GET").upper()
        data = body.encode("utf-8") if method != "GET" and body else None
        request_headers = build_headers(headers)
        last_error: Optional[BaseException] = None
        tag = f"[{label}] " if label else ""

        for attempt in self.policy.attempts():
            if attempt > 0:
                wait = self.policy.backoff(attempt)
                logger.info("%sRetry %d for %s, waiting %ss", tag, attempt, url, wait)
                if cancel.wait(wait):
                    raise FetchCancelled(f"Download of {url} cancelled")
            if cancel.is_set():
                raise FetchCancelled(f"Download of {url} cancelled")

            try:
                response = self.session.request(
                    method,
                    url,
                    headers=request_headers,
                    data=data,
                    timeout=(self.connect_timeout, self.timeout),
                    stream=True,
                )
            except requests.RequestException as e:
                last_error = e
                logger.info("%sAttempt %d failed: %s", tag, attempt, e)
                continue

            with response:
                if response.status_code != 200:
                    if not self.policy.retryable_status(response.status_code):
                        raise FetchRejected(response.status_code, response.reason or "")
                    last_error = FetchRejected(response.status_code, response.reason or "")
                    logger.info("%sAttempt %d failed: %s", tag, attempt, last_error)
                    continue

                try:
                    write_stream(response, destination)
                except (requests.RequestException, OSError) as e:
                    last_error = e
                    logger.info("%sAttempt %d failed while saving to %s: %s", tag, attempt, destination, e)
                    continue

            return

        raise FetchError(f"Giving up on {url} after {self.policy.max_attempts} attempts: {last_error}")


def write_stream(response: requests.Response, destination: Path) -> None:
    """Stream a response body into `destination`, replacing whatever is there"""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                f.write(chunk)
