"""Async GitHub contents API client with rate-limit handling and retries."""

from __future__ import annotations

import asyncio
import base64
import binascii
import time
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from cargo_fetcher.core.config import DEFAULT_API_URL, DEFAULT_TIMEOUT
from cargo_fetcher.exceptions import DependencyFileNotParseable
from cargo_fetcher.remote.models import DirectoryEntry, EntryKind, TreeContext

log = structlog.get_logger("cargo_fetcher.remote")

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds

_KIND_MAP = {
    "file": EntryKind.FILE,
    "symlink": EntryKind.FILE,
    "dir": EntryKind.DIRECTORY,
    "submodule": EntryKind.SUBMODULE,
}


class RateLimitError(Exception):
    """Raised when GitHub rate limit is exhausted and we need to wait."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


class GitHubTreeClient:
    """Read repository trees through ``/repos/{repo}/contents/{path}``.

    Implements :class:`cargo_fetcher.remote.client.RemoteTree`. A 404 is
    reported as ``None``; other 4xx responses raise ``httpx.HTTPStatusError``;
    5xx and timeouts are retried with exponential backoff.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"token {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubTreeClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── RemoteTree ─────────────────────────────────────────────────────────

    async def fetch_file(self, ctx: TreeContext, path: str) -> str | None:
        """Return the UTF-8 content of *path*, or None if it isn't a file."""
        data = await self._get_contents(ctx, path)
        if not isinstance(data, dict) or data.get("type") not in ("file", "symlink"):
            return None

        # Files over 1 MB come back without inline content.
        if data.get("encoding") == "none" and data.get("download_url"):
            response = await self._request_with_retry(data["download_url"])
            response.raise_for_status()
            return _decode_utf8(response.content, data.get("path", path))

        if "content" not in data:
            # Symlinks pointing outside the repository carry only a target
            return None
        return _decode_content(data)

    async def list_directory(
        self, ctx: TreeContext, path: str
    ) -> list[DirectoryEntry] | None:
        """List *path*; a file or submodule path yields a single entry."""
        data = await self._get_contents(ctx, path)
        if data is None:
            return None
        if isinstance(data, dict):
            return [self._parse_entry(data)]
        return [self._parse_entry(item) for item in data]

    # ── internal ───────────────────────────────────────────────────────────

    async def _get_contents(self, ctx: TreeContext, path: str) -> Any:
        url = f"/repos/{ctx.repo}/contents/{quote(path.strip('/'))}"
        response = await self._request_with_retry(url, {"ref": ctx.ref} if ctx.ref else None)
        if response.status_code == 404:
            log.debug("github.not_found", repo=ctx.repo, path=path, ref=ctx.ref)
            return None
        await self._check_rate_limit(response)
        return response.json()

    @staticmethod
    def _parse_entry(item: dict[str, Any]) -> DirectoryEntry:
        raw_type = item.get("type", "file")
        kind = _KIND_MAP.get(raw_type, EntryKind.FILE)
        # Directory listings report submodules as "file" with no download URL
        # and a git URL pointing at a tree object.
        if (
            kind is EntryKind.FILE
            and raw_type == "file"
            and item.get("download_url") is None
            and "/git/trees/" in (item.get("git_url") or "")
        ):
            kind = EntryKind.SUBMODULE

        if kind is EntryKind.SUBMODULE:
            return DirectoryEntry(
                name=item["name"],
                path=item["path"],
                kind=kind,
                submodule_ref=item.get("sha"),
                submodule_url=item.get("submodule_git_url"),
            )
        return DirectoryEntry(name=item["name"], path=item["path"], kind=kind)

    async def _request_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """GET with exponential backoff on 5xx, 403 rate-limit, and timeout errors.

        404 responses are returned as-is; other 4xx responses raise.
        """
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.get(url, params=params)

                # 403 with rate-limit headers → sleep and retry
                if resp.status_code == 403 and self._is_rate_limited(resp):
                    wait = self._get_rate_limit_wait(resp)
                    log.warning(
                        "github.rate_limit",
                        url=url,
                        wait_seconds=wait,
                        attempt=attempt + 1,
                        max_retries=_MAX_RETRIES,
                    )
                    await asyncio.sleep(wait)
                    last_exc = RateLimitError(wait)
                    continue

                if resp.status_code == 404:
                    return resp

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                # 5xx — retry
                log.warning(
                    "github.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = httpx.HTTPStatusError(
                    f"{resp.status_code}", request=resp.request, response=resp
                )
            except httpx.TimeoutException as exc:
                log.warning(
                    "github.timeout",
                    url=url,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = exc

            if attempt < _MAX_RETRIES - 1:
                delay = _RETRY_BASE_DELAY * (2**attempt)
                await asyncio.sleep(delay)

        raise last_exc  # type: ignore[misc]

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        """Check if a 403 response is due to rate limiting."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                return int(remaining) == 0
            except (ValueError, TypeError):
                pass
        # GitHub also uses Retry-After header for abuse rate limits
        return "Retry-After" in response.headers

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Calculate how long to wait based on rate-limit headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        reset_ts = response.headers.get("X-RateLimit-Reset")
        if reset_ts is not None:
            try:
                return max(int(reset_ts) - int(time.time()), 1)
            except (ValueError, TypeError):
                pass
        return 60  # conservative fallback

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None


def _decode_content(data: dict[str, Any]) -> str:
    content = data.get("content") or ""
    if data.get("encoding", "base64") != "base64":
        return content
    try:
        raw = base64.b64decode(content)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 content for {data.get('path')!r}") from exc
    return _decode_utf8(raw, data.get("path", ""))


def _decode_utf8(raw: bytes, path: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DependencyFileNotParseable(f"/{path.strip('/')}", "not valid UTF-8") from exc
