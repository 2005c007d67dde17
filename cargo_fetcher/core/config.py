"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """Settings shared by the CLI and :func:`cargo_fetcher.fetcher.fetch_files`.

    Environment variables:
        GITHUB_TOKEN / GH_TOKEN    — API token (optional)
        CARGO_FETCHER_API_URL      — GitHub API base URL
        CARGO_FETCHER_CONCURRENCY  — concurrent fetches per resolution
        CARGO_FETCHER_TIMEOUT      — HTTP timeout in seconds
    """

    github_token: str | None = None
    api_url: str = DEFAULT_API_URL
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> Settings:
        concurrency = int(os.environ.get("CARGO_FETCHER_CONCURRENCY", DEFAULT_CONCURRENCY))
        if concurrency < 1:
            raise ValueError(f"CARGO_FETCHER_CONCURRENCY must be >= 1, got {concurrency}")
        return cls(
            github_token=os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN"),
            api_url=os.environ.get("CARGO_FETCHER_API_URL", DEFAULT_API_URL).rstrip("/"),
            concurrency=concurrency,
            timeout=_env_float("CARGO_FETCHER_TIMEOUT", DEFAULT_TIMEOUT),
        )


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))
