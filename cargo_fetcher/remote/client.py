"""Interface every remote tree client must satisfy."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cargo_fetcher.remote.models import DirectoryEntry, TreeContext


@runtime_checkable
class RemoteTree(Protocol):
    """Read-only access to a repository tree at a fixed reference.

    Paths are repository-relative without a leading slash; ``""`` is the
    repository root. Not-found is reported as ``None``, never raised.
    Transient failures are the implementation's business (retry or raise).
    """

    async def fetch_file(self, ctx: TreeContext, path: str) -> str | None: ...

    async def list_directory(
        self, ctx: TreeContext, path: str
    ) -> list[DirectoryEntry] | None: ...
