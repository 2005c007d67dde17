"""Tests for GitHubTreeClient."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from cargo_fetcher.exceptions import DependencyFileNotParseable
from cargo_fetcher.remote.github_client import GitHubTreeClient, RateLimitError
from cargo_fetcher.remote.models import EntryKind, TreeContext

CTX = TreeContext(repo="gocardless/bump", ref="sha")
MANIFEST = '[package]\nname = "bump"\n'


def _file_payload(path: str, content: str) -> dict:
    return {
        "type": "file",
        "name": path.rsplit("/", 1)[-1],
        "path": path,
        "encoding": "base64",
        "content": base64.b64encode(content.encode()).decode(),
        "download_url": f"https://raw.githubusercontent.com/gocardless/bump/sha/{path}",
    }


def _client(handler) -> GitHubTreeClient:
    return GitHubTreeClient("abc", transport=httpx.MockTransport(handler))


# ── fetch_file ───────────────────────────────────────────────────────────


class TestFetchFile:
    @pytest.mark.anyio
    async def test_decodes_base64(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_file_payload("src/s3/Cargo.toml", MANIFEST))

        async with _client(handler) as client:
            content = await client.fetch_file(CTX, "src/s3/Cargo.toml")

        assert content == MANIFEST
        assert seen[0].url.path == "/repos/gocardless/bump/contents/src/s3/Cargo.toml"
        assert seen[0].url.params["ref"] == "sha"
        assert seen[0].headers["Authorization"] == "token abc"

    @pytest.mark.anyio
    async def test_no_ref_param_for_default_branch(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_file_payload("Cargo.toml", MANIFEST))

        default_branch = TreeContext(repo="gocardless/bump")
        assert default_branch.ref == ""
        async with _client(handler) as client:
            await client.fetch_file(default_branch, "Cargo.toml")

        assert "ref" not in seen[0].url.params

    @pytest.mark.anyio
    async def test_not_found(self):
        async with _client(lambda request: httpx.Response(404, json={})) as client:
            assert await client.fetch_file(CTX, "Cargo.toml") is None

    @pytest.mark.anyio
    async def test_directory_is_not_a_file(self):
        listing = [{"type": "file", "name": "Cargo.toml", "path": "src/Cargo.toml"}]
        async with _client(lambda request: httpx.Response(200, json=listing)) as client:
            assert await client.fetch_file(CTX, "src") is None

    @pytest.mark.anyio
    async def test_large_file_uses_download_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "raw.githubusercontent.com":
                return httpx.Response(200, text=MANIFEST)
            payload = _file_payload("Cargo.toml", "")
            payload.update(encoding="none", content="")
            return httpx.Response(200, json=payload)

        async with _client(handler) as client:
            assert await client.fetch_file(CTX, "Cargo.toml") == MANIFEST

    @pytest.mark.anyio
    async def test_invalid_utf8_is_not_parseable(self):
        payload = _file_payload("src/s3/Cargo.toml", "")
        payload["content"] = base64.b64encode(b'[package]\nname = "\xff\xfe"\n').decode()

        async with _client(lambda request: httpx.Response(200, json=payload)) as client:
            with pytest.raises(DependencyFileNotParseable) as exc_info:
                await client.fetch_file(CTX, "src/s3/Cargo.toml")
        assert exc_info.value.file_path == "/src/s3/Cargo.toml"

    @pytest.mark.anyio
    async def test_invalid_utf8_download_is_not_parseable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "raw.githubusercontent.com":
                return httpx.Response(200, content=b"\xff\xfe\xfd")
            payload = _file_payload("Cargo.toml", "")
            payload.update(encoding="none", content="")
            return httpx.Response(200, json=payload)

        async with _client(handler) as client:
            with pytest.raises(DependencyFileNotParseable):
                await client.fetch_file(CTX, "Cargo.toml")

    @pytest.mark.anyio
    async def test_forbidden_raises(self):
        async with _client(lambda request: httpx.Response(401, json={})) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.fetch_file(CTX, "Cargo.toml")


# ── list_directory ───────────────────────────────────────────────────────


class TestListDirectory:
    @pytest.mark.anyio
    async def test_entry_kinds(self):
        listing = [
            {"type": "file", "name": "Cargo.toml", "path": "lib/Cargo.toml",
             "download_url": "https://raw.githubusercontent.com/x", "git_url": "https://api.github.com/repos/x/git/blobs/1"},
            {"type": "dir", "name": "src", "path": "lib/src"},
            {"type": "symlink", "name": "link", "path": "lib/link"},
            {"type": "file", "name": "sub_crate", "path": "lib/sub_crate", "sha": "abc",
             "download_url": None, "git_url": "https://api.github.com/repos/x/git/trees/abc"},
        ]
        async with _client(lambda request: httpx.Response(200, json=listing)) as client:
            entries = await client.list_directory(CTX, "lib")

        assert [e.kind for e in entries] == [
            EntryKind.FILE,
            EntryKind.DIRECTORY,
            EntryKind.FILE,
            EntryKind.SUBMODULE,
        ]
        assert entries[3].submodule_ref == "abc"
        assert entries[3].submodule_url is None

    @pytest.mark.anyio
    async def test_submodule_object(self):
        payload = {
            "type": "submodule",
            "name": "sub_crate",
            "path": "lib/sub_crate",
            "sha": "453df4efd57f5e8958adf17d728520bd585c82c9",
            "submodule_git_url": "https://github.com/runconduit/conduit.git",
        }
        async with _client(lambda request: httpx.Response(200, json=payload)) as client:
            entries = await client.list_directory(CTX, "lib/sub_crate")

        assert len(entries) == 1
        assert entries[0].is_submodule
        assert entries[0].submodule_url == "https://github.com/runconduit/conduit.git"
        assert entries[0].submodule_ref == "453df4efd57f5e8958adf17d728520bd585c82c9"

    @pytest.mark.anyio
    async def test_not_found(self):
        async with _client(lambda request: httpx.Response(404, json={})) as client:
            assert await client.list_directory(CTX, "src/s3") is None


# ── retries ──────────────────────────────────────────────────────────────


class TestRetries:
    @pytest.mark.anyio
    async def test_retry_on_server_error(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        error_resp = MagicMock(spec=httpx.Response)
        error_resp.status_code = 502
        error_resp.request = MagicMock()

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200

        client._client.get = AsyncMock(side_effect=[error_resp, ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = await client._request_with_retry("/repos/x/y/contents/Cargo.toml")
            assert result is ok_resp
            assert client._client.get.call_count == 2

    @pytest.mark.anyio
    async def test_retry_exhausted(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        error_resp = MagicMock(spec=httpx.Response)
        error_resp.status_code = 500
        error_resp.request = MagicMock()

        client._client.get = AsyncMock(return_value=error_resp)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(httpx.HTTPStatusError):
                await client._request_with_retry("/repos/x/y/contents/Cargo.toml")
            assert client._client.get.call_count == 3

    @pytest.mark.anyio
    async def test_retry_on_timeout(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200

        client._client.get = AsyncMock(side_effect=[httpx.ReadTimeout("timeout"), ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = await client._request_with_retry("/repos/x/y/contents/Cargo.toml")
            assert result is ok_resp

    @pytest.mark.anyio
    async def test_404_is_not_retried(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        missing = MagicMock(spec=httpx.Response)
        missing.status_code = 404
        client._client.get = AsyncMock(return_value=missing)

        result = await client._request_with_retry("/repos/x/y/contents/Cargo.toml")
        assert result is missing
        assert client._client.get.call_count == 1

    @pytest.mark.anyio
    async def test_retry_on_403_rate_limit(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        rate_limited = MagicMock(spec=httpx.Response)
        rate_limited.status_code = 403
        rate_limited.headers = {"X-RateLimit-Remaining": "0", "Retry-After": "5"}

        ok_resp = MagicMock(spec=httpx.Response)
        ok_resp.status_code = 200

        client._client.get = AsyncMock(side_effect=[rate_limited, ok_resp])

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await client._request_with_retry("/repos/x/y/contents/Cargo.toml")
            assert result is ok_resp
            mock_sleep.assert_any_await(5)

    @pytest.mark.anyio
    async def test_403_rate_limit_exhausted(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        client._client = AsyncMock()

        rate_limited = MagicMock(spec=httpx.Response)
        rate_limited.status_code = 403
        rate_limited.headers = {"Retry-After": "1"}

        client._client.get = AsyncMock(return_value=rate_limited)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RateLimitError):
                await client._request_with_retry("/repos/x/y/contents/Cargo.toml")

    @pytest.mark.anyio
    async def test_rate_limit_sleep(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        response = MagicMock(spec=httpx.Response)
        response.headers = {"X-RateLimit-Remaining": "0", "Retry-After": "7"}

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._check_rate_limit(response)
            mock_sleep.assert_awaited_once_with(7)

    @pytest.mark.anyio
    async def test_rate_limit_no_sleep(self):
        client = GitHubTreeClient.__new__(GitHubTreeClient)
        response = MagicMock(spec=httpx.Response)
        response.headers = {"X-RateLimit-Remaining": "42"}

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client._check_rate_limit(response)
            mock_sleep.assert_not_awaited()
