"""In-memory remote tree — a test double for :class:`RemoteTree`.

Usage::

    tree = InMemoryTree()
    tree.add_files("org/repo", {"Cargo.toml": "...", "src/s3/Cargo.toml": "..."})
    tree.add_submodule("org/repo", "lib/sub_crate",
                       url="https://github.com/org/sub", ref="abc123")
"""

from __future__ import annotations

import posixpath

from cargo_fetcher.remote.models import DirectoryEntry, EntryKind, TreeContext


class InMemoryTree:
    """Serve files and listings from dictionaries keyed by repository.

    The ref of each call is recorded but not used for lookup: every
    repository holds exactly one snapshot.
    """

    def __init__(self) -> None:
        self._files: dict[str, dict[str, str]] = {}
        self._submodules: dict[str, dict[str, DirectoryEntry]] = {}
        self._calls: list[tuple[str, TreeContext, str]] = []

    @property
    def calls(self) -> list[tuple[str, TreeContext, str]]:
        """``(operation, ctx, path)`` for every request."""
        return self._calls

    def fetch_count(self, path: str, repo: str | None = None) -> int:
        return sum(
            1
            for op, ctx, p in self._calls
            if op == "fetch" and p == path and (repo is None or ctx.repo == repo)
        )

    def add_files(self, repo: str, files: dict[str, str]) -> InMemoryTree:
        self._files.setdefault(repo, {}).update(
            {path.strip("/"): content for path, content in files.items()}
        )
        return self

    def add_submodule(self, repo: str, path: str, *, url: str, ref: str) -> InMemoryTree:
        path = path.strip("/")
        self._submodules.setdefault(repo, {})[path] = DirectoryEntry(
            name=posixpath.basename(path),
            path=path,
            kind=EntryKind.SUBMODULE,
            submodule_ref=ref,
            submodule_url=url,
        )
        return self

    # ── RemoteTree ─────────────────────────────────────────────────────────

    async def fetch_file(self, ctx: TreeContext, path: str) -> str | None:
        path = path.strip("/")
        self._calls.append(("fetch", ctx, path))
        if self._inside_submodule(ctx.repo, path):
            return None
        return self._files.get(ctx.repo, {}).get(path)

    async def list_directory(
        self, ctx: TreeContext, path: str
    ) -> list[DirectoryEntry] | None:
        path = path.strip("/")
        self._calls.append(("list", ctx, path))

        submodules = self._submodules.get(ctx.repo, {})
        if path in submodules:
            return [submodules[path]]
        if self._inside_submodule(ctx.repo, path):
            return None

        files = self._files.get(ctx.repo, {})
        if path in files:
            return [DirectoryEntry(name=posixpath.basename(path), path=path, kind=EntryKind.FILE)]

        prefix = f"{path}/" if path else ""
        entries: dict[str, DirectoryEntry] = {}
        for file_path in files:
            if not file_path.startswith(prefix):
                continue
            head, sep, _ = file_path[len(prefix) :].partition("/")
            kind = EntryKind.DIRECTORY if sep else EntryKind.FILE
            entries.setdefault(head, DirectoryEntry(name=head, path=prefix + head, kind=kind))
        for sub_path, entry in submodules.items():
            if posixpath.dirname(sub_path) == path:
                entries[entry.name] = entry

        if not entries and path:
            return None
        return [entries[name] for name in sorted(entries)]

    def _inside_submodule(self, repo: str, path: str) -> bool:
        return any(
            path == sub or path.startswith(f"{sub}/") for sub in self._submodules.get(repo, {})
        )
