"""Shared fixtures for cargo-fetcher tests (no network required)."""

import pytest

from cargo_fetcher.remote.memory import InMemoryTree
from cargo_fetcher.remote.models import TreeContext

REPO = "gocardless/bump"
REF = "sha"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def tree():
    return InMemoryTree()


@pytest.fixture
def context():
    return TreeContext(repo=REPO, ref=REF)
