"""CLI entry point: cargo-fetch.

Usage:
    cargo-fetch owner/repo --ref <sha>                    # list collected files
    cargo-fetch https://github.com/org/repo --ref v1.0 --directory crates/app
    cargo-fetch owner/repo --ref main --json              # machine-readable output
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from cargo_fetcher.core.config import Settings
from cargo_fetcher.core.github import parse_repo_url
from cargo_fetcher.core.logging import setup_logging
from cargo_fetcher.exceptions import (
    DependencyFileNotFound,
    DependencyFileNotParseable,
    PathDependenciesNotReachable,
)
from cargo_fetcher.fetcher.engine import CargoFileFetcher
from cargo_fetcher.fetcher.models import FetchResult
from cargo_fetcher.remote.github_client import GitHubTreeClient
from cargo_fetcher.remote.models import TreeContext

EXIT_NOT_FOUND = 1
EXIT_NOT_PARSEABLE = 1
EXIT_UNREACHABLE = 3


async def _resolve(
    settings: Settings, context: TreeContext, directory: str, concurrency: int
) -> FetchResult:
    async with GitHubTreeClient(
        settings.github_token, base_url=settings.api_url, timeout=settings.timeout
    ) as client:
        fetcher = CargoFileFetcher(client, context, directory, max_concurrency=concurrency)
        return await fetcher.resolve()


def _print_result(result: FetchResult, as_json: bool, with_content: bool) -> None:
    if as_json:
        payload = result.to_dict()
        if not with_content:
            for row in payload["files"]:
                row.pop("content", None)
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(f"Found {len(result.files)} file(s) under {result.directory}\n")
    for f in result.files:
        role = "support" if f.support_file else "primary"
        click.echo(f"  {f.relative_name(result.directory):<50} {role}")
    click.echo(f"\nRust channel: {result.ecosystem_versions.get('cargo')}")


@click.command()
@click.argument("repo")
@click.option("--ref", "ref", default="", help="Branch, tag or commit SHA (default branch if omitted)")
@click.option("-d", "--directory", default="/", help="Directory holding the root Cargo.toml")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.option("--content", "with_content", is_flag=True, help="Include file contents in JSON output")
@click.option("-c", "--concurrency", type=int, default=None, help="Concurrent fetches")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(
    repo: str,
    ref: str,
    directory: str,
    as_json: bool,
    with_content: bool,
    concurrency: int | None,
    verbose: bool,
) -> None:
    """Collect every Cargo manifest a GitHub-hosted Rust project needs."""
    setup_logging("DEBUG" if verbose else None)

    try:
        owner, name = parse_repo_url(repo)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="REPO") from exc

    settings = Settings.from_env()
    if concurrency is not None and concurrency < 1:
        raise click.BadParameter("must be >= 1", param_hint="--concurrency")
    context = TreeContext(repo=f"{owner}/{name}", ref=ref)

    try:
        result = asyncio.run(
            _resolve(settings, context, directory, concurrency or settings.concurrency)
        )
    except PathDependenciesNotReachable as exc:
        click.echo("Error: path dependencies could not be retrieved:", err=True)
        for dep in exc.dependencies:
            click.echo(f"  {dep}", err=True)
        sys.exit(EXIT_UNREACHABLE)
    except DependencyFileNotFound as exc:
        click.echo(f"Error: {exc.file_path} not found", err=True)
        sys.exit(EXIT_NOT_FOUND)
    except DependencyFileNotParseable as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_NOT_PARSEABLE)

    _print_result(result, as_json, with_content)


if __name__ == "__main__":
    main()
