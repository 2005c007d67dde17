"""Follow git submodules when a manifest is missing from the parent repository."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

import structlog

from cargo_fetcher.core.github import repo_slug
from cargo_fetcher.core.paths import relative_to, repo_path
from cargo_fetcher.remote.client import RemoteTree
from cargo_fetcher.remote.models import DirectoryEntry, TreeContext

log = structlog.get_logger("cargo_fetcher.fetcher")


@dataclass(frozen=True)
class SubmoduleTarget:
    """Where a parent-repository directory really lives.

    ``sub_path`` is the directory inside the submodule repository
    (``""`` for its root).
    """

    context: TreeContext
    sub_path: str
    submodule_directory: str


class SubmoduleResolver:
    """Locate the submodule, if any, that contains a directory.

    The walk starts at the directory itself and climbs toward *root*
    (exclusive), one listing per level:

    * a listing that is a single submodule entry for the level itself means
      the level is the submodule;
    * a regular listing holding a submodule entry for the next level down
      means that child is the submodule;
    * a missing level sends the walk to its parent.
    """

    def __init__(self, client: RemoteTree, root: str = "/") -> None:
        self._client = client
        self._root = root

    async def locate(self, ctx: TreeContext, directory: str) -> SubmoduleTarget | None:
        child: str | None = None
        level = directory
        while level != self._root and level != "/" and _is_under(level, self._root):
            entries = await self._client.list_directory(ctx, repo_path(level))
            if entries is None:
                child, level = level, posixpath.dirname(level)
                continue

            own = repo_path(level)
            if len(entries) == 1 and entries[0].is_submodule and entries[0].path == own:
                return await self._target(ctx, entries[0], level, directory)

            if child is not None:
                name = posixpath.basename(child)
                for entry in entries:
                    if entry.name == name and entry.is_submodule:
                        return await self._target(ctx, entry, child, directory)
            return None
        return None

    def resolve_submodule(self, entry: DirectoryEntry) -> TreeContext | None:
        """Context of the submodule's own repository at its pinned commit."""
        if not entry.submodule_url or not entry.submodule_ref:
            return None
        slug = repo_slug(entry.submodule_url)
        if slug is None:
            log.warning(
                "submodule.unsupported_host",
                path=entry.path,
                url=entry.submodule_url,
            )
            return None
        return TreeContext(repo=slug, ref=entry.submodule_ref)

    async def _target(
        self,
        ctx: TreeContext,
        entry: DirectoryEntry,
        submodule_directory: str,
        directory: str,
    ) -> SubmoduleTarget | None:
        if entry.submodule_url is None:
            # Parent listings omit the URL; the submodule's own path has it.
            details = await self._client.list_directory(ctx, entry.path)
            if details and len(details) == 1 and details[0].is_submodule:
                entry = details[0]

        context = self.resolve_submodule(entry)
        if context is None:
            return None
        log.debug(
            "submodule.located",
            directory=directory,
            submodule=submodule_directory,
            repo=context.repo,
            ref=context.ref,
        )
        return SubmoduleTarget(
            context=context,
            sub_path=relative_to(directory, submodule_directory),
            submodule_directory=submodule_directory,
        )


def _is_under(directory: str, root: str) -> bool:
    return root == "/" or directory == root or directory.startswith(root + "/")
