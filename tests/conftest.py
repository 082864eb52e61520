"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from bucket_store import BucketStore, InMemoryBackend, LocalDiskBackend


class FakeClock:
    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=UTC)):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def disk(tmp_path):
    return LocalDiskBackend(tmp_path)


@pytest.fixture
def seeded(backend):
    """A backend whose "store" root already holds content nobody here created."""
    backend.create_bucket("store")
    backend.create_bucket("store/foreign")
    backend.write_object("store/foreign/data", b"old")
    backend.write_object("store/top", b"t")
    return backend


@pytest.fixture
def readonly(seeded):
    return BucketStore(seeded, "store", mode="readonly")


@pytest.fixture
def limited(seeded):
    return BucketStore(seeded, "store", mode="limited")


@pytest.fixture
def unlimited(seeded):
    return BucketStore(seeded, "store", mode="unlimited")
