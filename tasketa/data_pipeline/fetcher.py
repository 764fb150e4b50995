"""
Task ETA Risk — Jira Cloud REST fetcher.

Wraps all HTTP calls to the issue tracker into a single, reusable class.
Handles retries on rate-limiting and transport failures, and exposes the
raw data the rest of the service needs.

Usage::

    fetcher = JiraFetcher()
    issue   = await fetcher.get_issue("PROJ-1")
    async for raw in fetcher.iter_open_issues():
        ...
    value   = await fetcher.get_issue_property("PROJ-1", "com.tasketa.estimate")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import quote

import httpx

from tasketa import config
from tasketa.core.constants import (
    ISSUE_FIELDS, OPEN_ISSUES_FOR_ACCOUNT_JQL, OPEN_ISSUES_JQL, SEARCH_FIELDS,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TrackerError(Exception):
    """Non-success response (or no response at all) from the tracker."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class IssueNotVisibleError(TrackerError):
    """The issue does not exist or the API user may not browse it."""

    def __init__(self, issue_key: str, body: str = "") -> None:
        super().__init__(
            f"Issue fetch failed: 404. key=\"{issue_key}\". body={body}",
            status=404,
        )
        self.issue_key = issue_key


def _path_key(value: str) -> str:
    return quote(str(value), safe="")


class JiraFetcher:
    """Async HTTP client for the Jira Cloud REST v3 API.

    Instantiate once per process; the internal httpx.AsyncClient is
    lazily created and reused across calls.  Pass ``client`` to supply a
    pre-built one (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        email: Optional[str] = None,
        api_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url if base_url is not None else config.JIRA_BASE_URL).rstrip("/")
        self._email = email if email is not None else config.JIRA_EMAIL
        self._api_token = api_token if api_token is not None else config.JIRA_API_TOKEN
        self._client = client
        self.max_retries = max(1, max_retries if max_retries is not None else config.TRACKER_MAX_RETRIES)
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else config.TRACKER_RETRY_BACKOFF_SECONDS
        )
        self._timeout = timeout if timeout is not None else config.TRACKER_TIMEOUT_SECONDS

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            auth = None
            if self._email and self._api_token:
                auth = httpx.BasicAuth(self._email, self._api_token)
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                auth=auth,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying 429s and transport errors with backoff.

        Returns the final response whatever its status; callers decide what
        a non-2xx status means.  Raises TrackerError when every attempt
        failed at the transport level or stayed rate-limited.
        """
        client = await self._client_get()
        delay = self.retry_backoff
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    logger.warning(
                        "Tracker request %s %s failed (%s); retry %d/%d in %.0fs",
                        method, path, exc, attempt, self.max_retries, delay,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.error("Tracker request %s %s failed after %d attempts: %s",
                             method, path, self.max_retries, exc)
                break

            if resp.status_code == 429 and attempt < self.max_retries:
                logger.warning("Tracker rate-limited on %s; retrying in %.0fs", path, delay)
                await asyncio.sleep(delay)
                delay *= 2
                continue
            return resp

        if last_exc is not None:
            raise TrackerError(f"Tracker request failed: {last_exc}") from last_exc
        raise TrackerError("Tracker request failed: 429 rate limited", status=429)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issue(self, issue_key: str, fields: str = ISSUE_FIELDS) -> Dict[str, Any]:
        """Fetch a single issue.

        Raises IssueNotVisibleError on 404 and TrackerError on any other
        non-success status.
        """
        resp = await self._request(
            "GET", f"/rest/api/3/issue/{_path_key(issue_key)}", params={"fields": fields},
        )
        if resp.status_code == 404:
            raise IssueNotVisibleError(issue_key, resp.text)
        if not resp.is_success:
            raise TrackerError(
                f"Issue fetch failed: {resp.status_code}. key=\"{issue_key}\". body={resp.text}",
                status=resp.status_code,
            )
        return resp.json()

    async def iter_open_issues(
        self,
        account_id: Optional[str] = None,
        page_size: Optional[int] = None,
        cap: Optional[int] = None,
        fields: str = SEARCH_FIELDS,
    ) -> AsyncIterator[Dict[str, Any]]:
        """Yield the worker's open issues page by page.

        ``account_id`` None searches for the API user's own issues.
        Stops after ``cap`` issues (``config.SEARCH_MAX_ISSUES``) or when the
        reported total has been paged through.
        """
        page_size = max(1, page_size or config.SEARCH_PAGE_SIZE)
        cap = config.SEARCH_MAX_ISSUES if cap is None else cap
        if account_id:
            jql = OPEN_ISSUES_FOR_ACCOUNT_JQL.format(account_id=account_id.replace('"', ""))
        else:
            jql = OPEN_ISSUES_JQL

        start_at = 0
        yielded = 0
        while yielded < cap:
            resp = await self._request(
                "GET",
                "/rest/api/3/search",
                params={
                    "jql": jql,
                    "fields": fields,
                    "maxResults": page_size,
                    "startAt": start_at,
                },
            )
            if not resp.is_success:
                raise TrackerError(
                    f"Search failed: {resp.status_code} {resp.text}", status=resp.status_code,
                )
            data = resp.json()
            issues = data.get("issues") or []
            for raw in issues:
                if yielded >= cap:
                    break
                yield raw
                yielded += 1

            total = data.get("total") or 0
            if not issues or start_at + page_size >= total:
                break
            start_at += page_size

        logger.debug("Open-issue search yielded %d issues (cap=%d)", yielded, cap)

    # ------------------------------------------------------------------
    # Issue properties
    # ------------------------------------------------------------------

    async def get_issue_property(self, issue_key: str, property_key: str) -> Optional[Dict[str, Any]]:
        """Return the raw property document, or None when it is not set."""
        resp = await self._request(
            "GET",
            f"/rest/api/3/issue/{_path_key(issue_key)}/properties/{_path_key(property_key)}",
        )
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise TrackerError(f"Property read failed: {resp.status_code}", status=resp.status_code)
        return resp.json()

    async def set_issue_property(self, issue_key: str, property_key: str, value: Any) -> None:
        """Create or fully replace an issue property."""
        resp = await self._request(
            "PUT",
            f"/rest/api/3/issue/{_path_key(issue_key)}/properties/{_path_key(property_key)}",
            json=value,
        )
        if not resp.is_success:
            raise TrackerError(
                f"Property write failed: {resp.status_code} {resp.text}", status=resp.status_code,
            )

    async def close(self) -> None:
        """Cleanly close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
