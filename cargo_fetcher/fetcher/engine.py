"""Resolve every manifest a Cargo project needs from a remote tree."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field

import structlog

from cargo_fetcher.core.paths import join_directory, relative_to, repo_path
from cargo_fetcher.exceptions import DependencyFileNotFound, PathDependenciesNotReachable
from cargo_fetcher.fetcher.models import DependencyFile, FetchResult
from cargo_fetcher.fetcher.submodule import SubmoduleResolver
from cargo_fetcher.manifest.models import ParsedManifest
from cargo_fetcher.manifest.parser import parse_manifest
from cargo_fetcher.manifest.path_deps import extract_path_dependencies
from cargo_fetcher.manifest.toolchain import TOOLCHAIN_FILENAMES, extract_channel
from cargo_fetcher.manifest.workspace import expand_members, is_excluded
from cargo_fetcher.remote.client import RemoteTree
from cargo_fetcher.remote.models import DirectoryEntry, TreeContext

log = structlog.get_logger("cargo_fetcher.fetcher")

MANIFEST = "Cargo.toml"
LOCKFILE = "Cargo.lock"
CARGO_CONFIG_PATHS = (".cargo/config.toml", ".cargo/config")
DEFAULT_CONCURRENCY = 4


class _Origin(enum.Enum):
    PATH = "path"
    MEMBER = "member"


class _Status(enum.Enum):
    PENDING = "pending"
    FOUND = "found"
    MISSING = "missing"


@dataclass(frozen=True)
class _Candidate:
    directory: str
    origin: _Origin
    declared_by: str
    has_alternate_source: bool = False
    implicit_member: bool = False


@dataclass(frozen=True)
class _Expand:
    """Expand the workspace of a claim that became a member after being fetched."""

    directory: str


@dataclass
class _Claim:
    directory: str
    explicit_member: bool = False
    implicit_member: bool = False
    required: bool = False  # declared as a path dependency without an alternate source
    status: _Status = _Status.PENDING
    manifest: ParsedManifest | None = None
    content: str | None = None
    workspace_expanded: bool = False

    @property
    def is_member(self) -> bool:
        return self.explicit_member or self.implicit_member


@dataclass
class _ResolutionState:
    root: str
    claims: dict[str, _Claim] = field(default_factory=dict)
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)


class CargoFileFetcher:
    """Resolve the manifests of a Cargo project living in a remote tree.

    Path dependencies are followed transitively; workspace members are
    expanded for the root and for every member; submodules are followed
    into their own repository. Each directory is fetched at most once.

    One instance may run :meth:`resolve` repeatedly; no state survives
    between calls.
    """

    def __init__(
        self,
        client: RemoteTree,
        context: TreeContext,
        directory: str = "/",
        *,
        max_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._client = client
        self._context = context
        self._directory = join_directory("/", directory)
        self._max_concurrency = max_concurrency
        self._submodules = SubmoduleResolver(client, root=self._directory)

    @property
    def directory(self) -> str:
        return self._directory

    # ── public ──────────────────────────────────────────────────────────

    async def resolve(self) -> FetchResult:
        """Fetch the root manifest and everything reachable from it.

        Raises :class:`DependencyFileNotFound` or
        :class:`DependencyFileNotParseable` as soon as they occur, and
        :class:`PathDependenciesNotReachable` once the traversal is done.
        """
        root = self._directory
        log.info("fetcher.started", repo=self._context.repo, ref=self._context.ref, directory=root)

        root_content = await self._fetch(root, MANIFEST)
        if root_content is None:
            raise DependencyFileNotFound(repo_path(root, MANIFEST) or MANIFEST)
        root_manifest = parse_manifest(root_content, _file_path(root, MANIFEST))

        lockfile, cargo_config, toolchain = await asyncio.gather(
            self._fetch_optional(root, (LOCKFILE,), support_file=False),
            self._fetch_optional(root, CARGO_CONFIG_PATHS, support_file=True),
            self._fetch_optional(root, TOOLCHAIN_FILENAMES, support_file=True),
        )

        state = _ResolutionState(root=root)
        root_claim = _Claim(
            directory=root,
            explicit_member=True,
            status=_Status.FOUND,
            manifest=root_manifest,
            content=root_content,
        )
        state.claims[root] = root_claim
        await self._enqueue_children(state, root_claim)
        await self._drain(state)

        unreachable = sorted(
            self._relative_manifest(claim.directory)
            for claim in state.claims.values()
            if claim.status is _Status.MISSING and claim.required
        )
        if unreachable:
            log.warning("fetcher.path_deps_unreachable", dependencies=unreachable)
            raise PathDependenciesNotReachable(unreachable)

        channel = extract_channel(toolchain)

        files = [DependencyFile(name=MANIFEST, directory=root, content=root_content)]
        files.extend(f for f in (lockfile, cargo_config, toolchain) if f is not None)
        for directory in sorted(state.claims):
            claim = state.claims[directory]
            if claim is root_claim or claim.status is not _Status.FOUND:
                continue
            files.append(
                DependencyFile(
                    name=MANIFEST,
                    directory=directory,
                    content=claim.content or "",
                    support_file=not claim.is_member,
                )
            )

        log.info("fetcher.finished", repo=self._context.repo, files=len(files), channel=channel)
        return FetchResult(files=files, ecosystem_versions={"cargo": channel}, directory=root)

    # ── traversal ───────────────────────────────────────────────────────

    async def _drain(self, state: _ResolutionState) -> None:
        """Run the worker pool until the queue is empty or a worker fails."""
        workers = [
            asyncio.create_task(self._worker(state), name=f"cargo-fetcher-{i}")
            for i in range(self._max_concurrency)
        ]
        joined = asyncio.create_task(state.queue.join())
        try:
            await asyncio.wait([joined, *workers], return_when=asyncio.FIRST_COMPLETED)
            for worker in workers:
                if worker.done() and not worker.cancelled() and worker.exception():
                    raise worker.exception()  # type: ignore[misc]
        finally:
            for task in (joined, *workers):
                task.cancel()
            await asyncio.gather(joined, *workers, return_exceptions=True)

    async def _worker(self, state: _ResolutionState) -> None:
        while True:
            item = await state.queue.get()
            try:
                if isinstance(item, _Expand):
                    claim = state.claims[item.directory]
                    if not claim.workspace_expanded:
                        self._enqueue_path_deps(state, claim, implicit_only=True)
                        await self._expand(state, claim)
                else:
                    await self._visit(state, item)
            finally:
                state.queue.task_done()

    async def _visit(self, state: _ResolutionState, candidate: _Candidate) -> None:
        claim = state.claims.get(candidate.directory)
        if claim is not None:
            self._merge(state, claim, candidate)
            return

        # Claim before the first await so no other worker fetches this directory.
        claim = _Claim(
            directory=candidate.directory,
            explicit_member=candidate.origin is _Origin.MEMBER,
            implicit_member=candidate.implicit_member,
            required=_is_required(candidate),
        )
        state.claims[candidate.directory] = claim

        content = await self._fetch_manifest(candidate.directory)
        if content is None:
            claim.status = _Status.MISSING
            if claim.explicit_member:
                raise DependencyFileNotFound(self._relative_manifest(candidate.directory))
            log.info(
                "fetcher.path_dep_missing",
                directory=candidate.directory,
                declared_by=candidate.declared_by,
                required=claim.required,
            )
            return

        claim.manifest = parse_manifest(content, _file_path(candidate.directory, MANIFEST))
        claim.content = content
        claim.status = _Status.FOUND
        log.debug(
            "fetcher.manifest_fetched",
            directory=candidate.directory,
            origin=candidate.origin.value,
            member=claim.is_member,
        )
        await self._enqueue_children(state, claim)

    def _merge(self, state: _ResolutionState, claim: _Claim, candidate: _Candidate) -> None:
        """Fold a repeat candidate into an existing claim without refetching."""
        if _is_required(candidate):
            claim.required = True

        became_member = False
        if candidate.origin is _Origin.MEMBER and not claim.explicit_member:
            claim.explicit_member = became_member = True
        if candidate.implicit_member and not claim.implicit_member:
            claim.implicit_member = became_member = True

        if claim.status is _Status.MISSING and claim.explicit_member:
            raise DependencyFileNotFound(self._relative_manifest(claim.directory))
        if became_member and claim.status is _Status.FOUND and not claim.workspace_expanded:
            state.queue.put_nowait(_Expand(claim.directory))

    async def _enqueue_children(self, state: _ResolutionState, claim: _Claim) -> None:
        """Queue path dependencies, then (members only) workspace members."""
        self._enqueue_path_deps(state, claim)
        if claim.is_member:
            await self._expand(state, claim)

    def _enqueue_path_deps(
        self, state: _ResolutionState, claim: _Claim, *, implicit_only: bool = False
    ) -> None:
        manifest = claim.manifest
        assert manifest is not None
        # Path dependencies inside an implicit workspace are its members unless excluded.
        implicit = claim.is_member and _has_implicit_workspace(manifest)
        for dep in extract_path_dependencies(manifest, claim.directory):
            member = (
                implicit
                and _is_within(dep.directory, claim.directory)
                and not is_excluded(manifest, claim.directory, dep.directory)
            )
            if implicit_only and not member:
                continue
            state.queue.put_nowait(
                _Candidate(
                    directory=dep.directory,
                    origin=_Origin.PATH,
                    declared_by=claim.directory,
                    has_alternate_source=dep.has_alternate_source,
                    implicit_member=member,
                )
            )

    async def _expand(self, state: _ResolutionState, claim: _Claim) -> None:
        if claim.workspace_expanded:
            return
        claim.workspace_expanded = True
        manifest = claim.manifest
        assert manifest is not None

        members = await expand_members(manifest, claim.directory, self._list_directory)
        for directory in members:
            state.queue.put_nowait(
                _Candidate(directory=directory, origin=_Origin.MEMBER, declared_by=claim.directory)
            )

    # ── remote access ───────────────────────────────────────────────────

    async def _fetch(self, directory: str, name: str) -> str | None:
        return await self._client.fetch_file(self._context, repo_path(directory, name))

    async def _fetch_optional(
        self, directory: str, names: tuple[str, ...], *, support_file: bool
    ) -> DependencyFile | None:
        """Fetch the first of *names* that exists under *directory*."""
        for name in names:
            content = await self._fetch(directory, name)
            if content is None:
                continue
            sub_dir, _, base = name.rpartition("/")
            return DependencyFile(
                name=base,
                directory=join_directory(directory, sub_dir),
                content=content,
                support_file=support_file,
            )
        return None

    async def _fetch_manifest(self, directory: str) -> str | None:
        content = await self._fetch(directory, MANIFEST)
        if content is not None:
            return content

        target = await self._submodules.locate(self._context, directory)
        if target is None:
            return None
        log.info(
            "fetcher.submodule_redirect",
            directory=directory,
            repo=target.context.repo,
            ref=target.context.ref,
            sub_path=target.sub_path,
        )
        sub_file = f"{target.sub_path}/{MANIFEST}" if target.sub_path else MANIFEST
        return await self._client.fetch_file(target.context, sub_file)

    async def _list_directory(self, directory: str) -> list[DirectoryEntry] | None:
        return await self._client.list_directory(self._context, repo_path(directory))

    def _relative_manifest(self, directory: str) -> str:
        relative = relative_to(directory, self._directory)
        return f"{relative}/{MANIFEST}" if relative else MANIFEST


async def fetch_files(
    repo: str,
    ref: str,
    directory: str = "/",
    *,
    client: RemoteTree | None = None,
    max_concurrency: int | None = None,
) -> FetchResult:
    """One-shot resolution against GitHub using environment settings."""
    from cargo_fetcher.core.config import Settings
    from cargo_fetcher.remote.github_client import GitHubTreeClient

    settings = Settings.from_env()
    context = TreeContext(repo=repo, ref=ref)
    concurrency = max_concurrency or settings.concurrency

    if client is not None:
        fetcher = CargoFileFetcher(client, context, directory, max_concurrency=concurrency)
        return await fetcher.resolve()

    async with GitHubTreeClient(
        settings.github_token, base_url=settings.api_url, timeout=settings.timeout
    ) as github:
        fetcher = CargoFileFetcher(github, context, directory, max_concurrency=concurrency)
        return await fetcher.resolve()


def _is_required(candidate: _Candidate) -> bool:
    return candidate.origin is _Origin.PATH and not candidate.has_alternate_source


def _has_implicit_workspace(manifest: ParsedManifest) -> bool:
    return manifest.workspace is not None and manifest.workspace.is_implicit


def _is_within(directory: str, parent: str) -> bool:
    if directory == parent:
        return False
    return parent == "/" or directory.startswith(parent + "/")


def _file_path(directory: str, name: str) -> str:
    return f"/{repo_path(directory, name)}"
