"""GitHub URL utilities."""

from __future__ import annotations


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """Extract (owner, repo) from a GitHub URL or ``owner/repo`` slug.

    Raises ValueError if the URL cannot be parsed.
    """
    result = _extract_owner_repo(repo_url)
    if result is None:
        raise ValueError(f"cannot parse GitHub repo URL: {repo_url!r}")
    owner, repo = result.split("/", 1)
    return owner, repo


def repo_slug(repo_url: str) -> str | None:
    """Return ``owner/repo`` for a GitHub URL, or None if it isn't one."""
    return _extract_owner_repo(repo_url)


def _extract_owner_repo(repo_url: str) -> str | None:
    """Extract 'owner/repo' from a GitHub URL.

    Handles:
      - owner/repo
      - https://github.com/owner/repo
      - https://github.com/owner/repo.git
      - git@github.com:owner/repo.git
    """
    repo_url = repo_url.strip().rstrip("/")
    if repo_url.endswith(".git"):
        repo_url = repo_url[:-4]

    # SSH format: git@github.com:owner/repo
    if repo_url.startswith("git@"):
        host, _, path = repo_url[4:].partition(":")
        if host != "github.com" or not path:
            return None
        parts = path.split("/")
        if len(parts) == 2 and all(parts):
            return f"{parts[0]}/{parts[1]}"
        return None

    # Bare slug: owner/repo
    if "://" not in repo_url:
        parts = repo_url.split("/")
        if len(parts) == 2 and all(parts) and "." not in parts[0]:
            return f"{parts[0]}/{parts[1]}"
        if len(parts) != 3 or parts[0] not in ("github.com", "www.github.com"):
            return None
        return f"{parts[1]}/{parts[2]}" if parts[1] and parts[2] else None

    # HTTPS format: https://github.com/owner/repo
    scheme_rest = repo_url.split("://", 1)[1]
    parts = scheme_rest.split("/")
    if parts[0] not in ("github.com", "www.github.com"):
        return None
    if len(parts) == 3 and parts[1] and parts[2]:
        return f"{parts[1]}/{parts[2]}"
    return None
