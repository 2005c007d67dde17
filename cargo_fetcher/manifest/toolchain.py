"""Extract the Rust channel from a rust-toolchain file."""

from __future__ import annotations

import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from cargo_fetcher.exceptions import DependencyFileNotParseable
from cargo_fetcher.fetcher.models import DependencyFile

DEFAULT_CHANNEL = "default"

# Checked in this order; the first one present wins.
TOOLCHAIN_FILENAMES = ("rust-toolchain.toml", "rust-toolchain")


def extract_channel(file: DependencyFile | None) -> str:
    """Return the channel declared by *file*, or ``"default"`` without one.

    ``rust-toolchain`` holds a bare channel token on its first non-empty
    line; ``rust-toolchain.toml`` holds ``[toolchain] channel = "..."``.
    """
    if file is None:
        return DEFAULT_CHANNEL
    if file.name == "rust-toolchain.toml":
        return _channel_from_toml(file)
    return _channel_from_plain(file)


def _channel_from_plain(file: DependencyFile) -> str:
    for line in file.content.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("[") or "=" in line:
            raise DependencyFileNotParseable(
                file.path, "expected a bare channel name, found TOML syntax"
            )
        return line
    raise DependencyFileNotParseable(file.path, "file is empty")


def _channel_from_toml(file: DependencyFile) -> str:
    try:
        data = tomllib.loads(file.content)
    except tomllib.TOMLDecodeError as exc:
        raise DependencyFileNotParseable(file.path, str(exc)) from exc

    toolchain = data.get("toolchain")
    if not isinstance(toolchain, dict):
        raise DependencyFileNotParseable(file.path, "missing [toolchain] table")
    channel = toolchain.get("channel")
    if not isinstance(channel, str) or not channel.strip():
        raise DependencyFileNotParseable(file.path, "missing toolchain.channel")
    return channel.strip()
