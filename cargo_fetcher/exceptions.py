"""Custom exceptions for cargo-fetcher."""

from __future__ import annotations


class FileFetcherError(Exception):
    """Base exception for all file fetcher errors."""


class DependencyFileNotFound(FileFetcherError):
    """Raised when the root manifest or a workspace member's manifest is missing."""

    def __init__(self, file_path: str, msg: str | None = None):
        self.file_path = file_path
        super().__init__(msg or f"{file_path} not found")


class DependencyFileNotParseable(FileFetcherError):
    """Raised when a manifest or toolchain file cannot be parsed."""

    def __init__(self, file_path: str, reason: str | None = None):
        self.file_path = file_path
        self.reason = reason
        msg = f"{file_path} not parseable"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PathDependenciesNotReachable(FileFetcherError):
    """Raised after a full traversal when path dependencies could not be fetched.

    ``dependencies`` lists every unreachable manifest, relative to the
    fetcher's root directory (e.g. ``src/s3/Cargo.toml``).
    """

    def __init__(self, dependencies: list[str]):
        self.dependencies = list(dependencies)
        super().__init__(
            f"The following path based dependencies could not be retrieved: "
            f"{', '.join(self.dependencies)}"
        )
