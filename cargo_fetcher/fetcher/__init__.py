"""File fetcher engine — walk a remote Cargo project and collect its manifests."""

from cargo_fetcher.fetcher.models import DependencyFile, FetchResult
from cargo_fetcher.fetcher.engine import CargoFileFetcher, fetch_files
from cargo_fetcher.fetcher.submodule import SubmoduleResolver, SubmoduleTarget

__all__ = [
    "CargoFileFetcher",
    "DependencyFile",
    "FetchResult",
    "SubmoduleResolver",
    "SubmoduleTarget",
    "fetch_files",
]
