"""Backend protocol — the capability set every storage provider implements."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Backend(ABC):
    """Abstract base for all storage backends.

    Every method takes an absolute resource path (``/``-delimited, already
    confined by the façade).  Backends know nothing about permission modes,
    rule sets or the façade's ownership ledger; those live one layer up in
    :class:`~bucket_store.store.BucketStore`.

    ``is_bucket`` and ``is_object`` are mutually exclusive; both ``False``
    means the path does not exist.  Methods returning ``bool`` report a
    contract-level refusal (missing parent, already exists ...) with
    ``False``; invariant violations raise a
    :class:`~bucket_store.exceptions.BucketStoreError` and I/O problems
    propagate as :class:`OSError`.
    """

    @abstractmethod
    def is_bucket(self, path: str) -> bool:
        """Return ``True`` if *path* is an existing bucket."""
        ...

    @abstractmethod
    def is_object(self, path: str) -> bool:
        """Return ``True`` if *path* is an existing object."""
        ...

    @abstractmethod
    def list(self, path: str) -> list[str] | None:
        """Return the sorted child names of a bucket, or ``None`` if *path* is not a bucket."""
        ...

    @abstractmethod
    def create_bucket(self, path: str) -> bool:
        """Create an empty bucket.

        Fails if *path* already exists (as either kind) or its parent bucket
        does not exist.
        """
        ...

    @abstractmethod
    def write_object(self, path: str, value: bytes) -> bool:
        """Create or overwrite an object.  Fails if the parent bucket does not exist."""
        ...

    @abstractmethod
    def read_object(self, path: str) -> bytes | None:
        """Return the object's bytes, or ``None`` if *path* is not an object."""
        ...

    @abstractmethod
    def delete_bucket(self, path: str) -> bool:
        """Delete an existing, empty bucket."""
        ...

    @abstractmethod
    def delete_object(self, path: str) -> bool:
        """Delete an existing object."""
        ...

    @abstractmethod
    def is_local(self) -> bool:
        """Return ``True`` if the storage lives on the caller's machine."""
        ...


def as_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    """Objects are opaque bytes; text is stored as UTF-8.

    Raises:
        TypeError: *value* is neither text nor a bytes-like buffer.
    """
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Object values must be bytes or str, not {type(value).__name__}")
