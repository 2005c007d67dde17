"""cargo-fetcher — locate every Cargo manifest a remote package needs."""

from cargo_fetcher.exceptions import (
    DependencyFileNotFound,
    DependencyFileNotParseable,
    FileFetcherError,
    PathDependenciesNotReachable,
)
from cargo_fetcher.fetcher import CargoFileFetcher, DependencyFile, FetchResult, fetch_files
from cargo_fetcher.remote import TreeContext

__all__ = [
    "CargoFileFetcher",
    "DependencyFile",
    "DependencyFileNotFound",
    "DependencyFileNotParseable",
    "FetchResult",
    "FileFetcherError",
    "PathDependenciesNotReachable",
    "TreeContext",
    "fetch_files",
]
