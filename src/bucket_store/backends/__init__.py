"""Storage backends behind the bucket/object façade."""

from bucket_store.backends.base import Backend
from bucket_store.backends.local_disk import LocalDiskBackend
from bucket_store.backends.memory import InMemoryBackend

__all__ = ["Backend", "InMemoryBackend", "LocalDiskBackend"]
