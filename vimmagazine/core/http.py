"""Blocking HTTP fetcher with bounded timeout and retry for transient failures."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

from vimmagazine.core.config import Settings

LOGGER = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
USER_AGENT = "vim-magazine-tools/0.1 (python-httpx)"
RETRY_STATUS = {429}


class FetchError(Exception):
    """Raised when a remote source cannot be fetched or decoded."""

    def __init__(self, source: str, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.source = source
        self.url = url


def backoff_seconds(attempt: int) -> float:
    return min(8.0, 0.8 * (2 ** (attempt - 1)))


class HttpFetcher:
    """Thin wrapper over ``httpx.Client`` shared by all fetchers of one run."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.attempts = max(1, settings.attempts)
        self._sleep = sleep
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(settings.timeout_seconds),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _headers(self, url: str) -> dict[str, str]:
        if not url.startswith(GITHUB_API_BASE):
            return {}
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        return headers

    def get(self, url: str, source: str) -> httpx.Response:
        """GET ``url`` and read its body.

        Transport errors and 5xx/429 responses are retried; every other request
        failure becomes a ``FetchError`` for ``source``.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                response = self.client.get(
                    url, headers=self._headers(url), follow_redirects=True
                )
                response.read()
            except httpx.TransportError as exc:
                last_error = exc
            except httpx.RequestError as exc:
                # redirect loops and undecodable bodies are not transient
                raise FetchError(source, url, f"request failed: {exc}") from exc
            else:
                status = response.status_code
                if status < 400:
                    return response
                if status < 500 and status not in RETRY_STATUS:
                    raise FetchError(source, url, f"HTTP {status}")
                last_error = RuntimeError(f"HTTP {status}")
            if attempt == self.attempts:
                break
            delay = backoff_seconds(attempt)
            LOGGER.warning(
                "%s fetch attempt %d/%d failed (%s), retrying in %.1fs",
                source,
                attempt,
                self.attempts,
                last_error,
                delay,
            )
            self._sleep(delay)
        raise FetchError(
            source, url, f"request failed after {self.attempts} attempts: {last_error}"
        ) from last_error

    def get_text(self, url: str, source: str, encoding: str = "utf-8") -> str:
        response = self.get(url, source)
        return response.content.decode(encoding, errors="replace")

    def get_json(self, url: str, source: str) -> tuple[Any, httpx.Response]:
        response = self.get(url, source)
        try:
            return response.json(), response
        except ValueError as exc:
            raise FetchError(source, url, f"invalid JSON payload: {exc}") from exc


def next_page_url(response: httpx.Response) -> str | None:
    """Return the ``rel="next"`` target of the response Link header, if any."""
    return response.links.get("next", {}).get("url")
