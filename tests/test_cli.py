"""Tests for the cargo-fetch command line."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from cargo_fetcher.cli import main
from cargo_fetcher.exceptions import (
    DependencyFileNotFound,
    DependencyFileNotParseable,
    PathDependenciesNotReachable,
)
from cargo_fetcher.fetcher.models import DependencyFile, FetchResult
from cargo_fetcher.remote.models import TreeContext


def _result() -> FetchResult:
    return FetchResult(
        files=[
            DependencyFile(name="Cargo.toml", directory="/", content="[package]\n"),
            DependencyFile(
                name="Cargo.toml", directory="/src/s3", content="[package]\n", support_file=True
            ),
        ],
        ecosystem_versions={"cargo": "1.2.3"},
    )


class TestMain:
    def test_lists_files(self):
        runner = CliRunner()
        with patch("cargo_fetcher.cli._resolve", new=AsyncMock(return_value=_result())):
            result = runner.invoke(main, ["gocardless/bump", "--ref", "sha"])
        assert result.exit_code == 0
        assert "src/s3/Cargo.toml" in result.output
        assert "support" in result.output
        assert "Rust channel: 1.2.3" in result.output

    def test_passes_context_and_directory(self, monkeypatch):
        monkeypatch.setenv("CARGO_FETCHER_CONCURRENCY", "6")
        runner = CliRunner()
        resolve = AsyncMock(return_value=_result())
        with patch("cargo_fetcher.cli._resolve", new=resolve):
            result = runner.invoke(
                main, ["https://github.com/gocardless/bump.git", "--ref", "v1", "-d", "crates"]
            )
        assert result.exit_code == 0
        settings, context, directory, concurrency = resolve.await_args.args
        assert context == TreeContext(repo="gocardless/bump", ref="v1")
        assert directory == "crates"
        assert concurrency == 6
        assert settings.concurrency == 6

    def test_concurrency_flag_wins(self):
        runner = CliRunner()
        resolve = AsyncMock(return_value=_result())
        with patch("cargo_fetcher.cli._resolve", new=resolve):
            runner.invoke(main, ["gocardless/bump", "-c", "2"])
        assert resolve.await_args.args[3] == 2

    def test_json_output(self):
        runner = CliRunner()
        with patch("cargo_fetcher.cli._resolve", new=AsyncMock(return_value=_result())):
            result = runner.invoke(main, ["gocardless/bump", "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [f["name"] for f in payload["files"]] == ["Cargo.toml", "src/s3/Cargo.toml"]
        assert payload["ecosystem_versions"] == {"cargo": "1.2.3"}
        assert "content" not in payload["files"][0]

    def test_json_output_with_content(self):
        runner = CliRunner()
        with patch("cargo_fetcher.cli._resolve", new=AsyncMock(return_value=_result())):
            result = runner.invoke(main, ["gocardless/bump", "--json", "--content"])
        payload = json.loads(result.stdout)
        assert payload["files"][1]["content"] == "[package]\n"
        assert payload["files"][1]["support_file"] is True

    def test_bad_repo(self):
        runner = CliRunner()
        result = runner.invoke(main, ["https://gitlab.com/org/repo"])
        assert result.exit_code == 2

    def test_bad_concurrency(self):
        runner = CliRunner()
        result = runner.invoke(main, ["gocardless/bump", "-c", "0"])
        assert result.exit_code == 2


class TestExitCodes:
    def _invoke(self, error: Exception):
        runner = CliRunner()
        with patch("cargo_fetcher.cli._resolve", new=AsyncMock(side_effect=error)):
            return runner.invoke(main, ["gocardless/bump"])

    def test_not_found(self):
        result = self._invoke(DependencyFileNotFound("lib/sub_crate/Cargo.toml"))
        assert result.exit_code == 1
        assert "lib/sub_crate/Cargo.toml not found" in result.output

    def test_not_parseable(self):
        result = self._invoke(DependencyFileNotParseable("/Cargo.toml"))
        assert result.exit_code == 1

    def test_unreachable(self):
        result = self._invoke(
            PathDependenciesNotReachable(["crates/a/Cargo.toml", "src/s3/Cargo.toml"])
        )
        assert result.exit_code == 3
        assert "crates/a/Cargo.toml" in result.output
        assert "src/s3/Cargo.toml" in result.output
