"""Remote tree access — GitHub contents API and an in-memory double."""

from cargo_fetcher.remote.client import RemoteTree
from cargo_fetcher.remote.github_client import GitHubTreeClient, RateLimitError
from cargo_fetcher.remote.memory import InMemoryTree
from cargo_fetcher.remote.models import DirectoryEntry, EntryKind, TreeContext

__all__ = [
    "DirectoryEntry",
    "EntryKind",
    "GitHubTreeClient",
    "InMemoryTree",
    "RateLimitError",
    "RemoteTree",
    "TreeContext",
]
