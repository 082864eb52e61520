"""InMemoryBackend — zero-config, dict-backed storage for development and testing."""

from __future__ import annotations

import posixpath

from bucket_store.backends.base import Backend, as_bytes
from bucket_store.exceptions import KeyIsBucketError, NotEmptyError

_TOP = "/"


def _norm(path: str) -> str:
    return posixpath.normpath(_TOP + path.lstrip(_TOP))


class InMemoryBackend(Backend):
    """In-memory tree of buckets and objects.  Data is lost on process exit.

    Relative and absolute paths share one namespace (``"store/a"`` and
    ``"/store/a"`` are the same resource); the top level always exists.
    """

    def __init__(self) -> None:
        self._buckets: set[str] = {_TOP}
        self._objects: dict[str, bytes] = {}

    def _children(self, path: str) -> list[str]:
        prefix = path if path == _TOP else path + _TOP
        names = {
            p[len(prefix) :]
            for p in (*self._buckets, *self._objects)
            if p != path and p.startswith(prefix) and _TOP not in p[len(prefix) :]
        }
        return sorted(names)

    def is_bucket(self, path: str) -> bool:
        return _norm(path) in self._buckets

    def is_object(self, path: str) -> bool:
        return _norm(path) in self._objects

    def list(self, path: str) -> list[str] | None:
        path = _norm(path)
        if path not in self._buckets:
            return None
        return self._children(path)

    def create_bucket(self, path: str) -> bool:
        path = _norm(path)
        if path in self._buckets or path in self._objects:
            return False
        if posixpath.dirname(path) not in self._buckets:
            return False
        self._buckets.add(path)
        return True

    def write_object(self, path: str, value: bytes) -> bool:
        path = _norm(path)
        if path in self._buckets:
            raise KeyIsBucketError(path)
        if posixpath.dirname(path) not in self._buckets:
            return False
        self._objects[path] = as_bytes(value)
        return True

    def read_object(self, path: str) -> bytes | None:
        return self._objects.get(_norm(path))

    def delete_bucket(self, path: str) -> bool:
        path = _norm(path)
        if path not in self._buckets or path == _TOP:
            return False
        if self._children(path):
            raise NotEmptyError(path)
        self._buckets.discard(path)
        return True

    def delete_object(self, path: str) -> bool:
        return self._objects.pop(_norm(path), None) is not None

    def is_local(self) -> bool:
        return True
