"""LocalDiskBackend — buckets as directories, objects as files under a prefix."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from bucket_store.backends.base import Backend, as_bytes
from bucket_store.exceptions import (
    InvalidKeyError,
    InvalidObjectKeyError,
    KeyIsBucketError,
    NotEmptyError,
    NotFoundError,
    NotOwnedError,
    StoreConfigError,
    TraversalRejectedError,
)
from bucket_store.paths import DELIMITER, NUL, has_traversal

logger = logging.getLogger(__name__)


class LocalDiskBackend(Backend):
    """Backend storing everything below a directory prefix.

    ``prefix = "/tmp/"`` maps the resource path ``store/a/x`` to the file
    ``/tmp/store/a/x``.  The prefix is created if absent; in that case it is
    owned by this instance and may be removed again by ``delete_all``.

    The backend remembers which files and directories *it* created and will
    never delete anything else, whatever the caller's façade permission is.
    The only way past that floor is ``delete_all(..., include_foreign=True)``.

    Besides the :class:`Backend` contract the instance is usable as a plain
    key-value store (``disk["a/b/x"] = b"..."``); that surface creates missing
    intermediate directories on write.

    Parameters:
        prefix: Directory under which all keys live.
    """

    def __init__(self, prefix: str | os.PathLike[str]) -> None:
        prefix = os.fspath(prefix)
        if not prefix:
            raise StoreConfigError("LocalDiskBackend requires a directory prefix")
        if not prefix.endswith(os.sep):
            prefix += os.sep
        self.prefix = prefix
        self.created_files: set[str] = set()
        self.created_dirs: set[str] = set()
        if not os.path.isdir(prefix):
            os.makedirs(prefix)
            self.created_dirs.add(os.path.normpath(prefix))

    def _fullpath(self, key: str) -> str:
        if has_traversal(key):
            raise TraversalRejectedError(key)
        if NUL in key:
            raise InvalidKeyError(key)
        return os.path.normpath(os.path.join(self.prefix, key.lstrip(DELIMITER)))

    def _object_path(self, key: str) -> str:
        fullpath = self._fullpath(key)
        if key.endswith(DELIMITER):
            if os.path.isdir(fullpath):
                raise KeyIsBucketError(key)
            raise InvalidObjectKeyError(key)
        if os.path.isdir(fullpath):
            raise KeyIsBucketError(key)
        return fullpath

    def owns_file(self, fullpath: str) -> bool:
        return fullpath in self.created_files

    def owns_dir(self, fullpath: str) -> bool:
        return fullpath in self.created_dirs

    # ── Backend protocol ─────────────────────────────────────

    def is_bucket(self, path: str) -> bool:
        return os.path.isdir(self._fullpath(path))

    def is_object(self, path: str) -> bool:
        return os.path.isfile(self._fullpath(path))

    def list(self, path: str) -> list[str] | None:
        fullpath = self._fullpath(path)
        if not os.path.isdir(fullpath):
            return None
        return sorted(os.listdir(fullpath))

    def create_bucket(self, path: str) -> bool:
        fullpath = self._fullpath(path)
        if os.path.lexists(fullpath):
            return False
        if not os.path.isdir(os.path.dirname(fullpath)):
            return False
        os.mkdir(fullpath)
        self.created_dirs.add(fullpath)
        return True

    def write_object(self, path: str, value: bytes) -> bool:
        fullpath = self._object_path(path)
        if not os.path.isdir(os.path.dirname(fullpath)):
            return False
        self._write(fullpath, value)
        return True

    def read_object(self, path: str) -> bytes | None:
        fullpath = self._fullpath(path)
        if not os.path.isfile(fullpath):
            return None
        return Path(fullpath).read_bytes()

    def delete_bucket(self, path: str) -> bool:
        fullpath = self._fullpath(path)
        if not os.path.isdir(fullpath):
            return False
        self._remove_dir(fullpath)
        return True

    def delete_object(self, path: str) -> bool:
        fullpath = self._fullpath(path)
        if not os.path.isfile(fullpath):
            return False
        self._remove_file(fullpath)
        return True

    def is_local(self) -> bool:
        return True

    # ── key-value surface ────────────────────────────────────

    def __setitem__(self, key: str, value: bytes | str) -> None:
        fullpath = self._object_path(key)
        self._make_parents(os.path.dirname(fullpath))
        self._write(fullpath, value)

    def __getitem__(self, key: str) -> bytes:
        fullpath = self._fullpath(key)
        if os.path.isdir(fullpath):
            raise KeyIsBucketError(key)
        if not os.path.isfile(fullpath):
            raise NotFoundError(key, "file")
        return Path(fullpath).read_bytes()

    def __delitem__(self, key: str) -> None:
        """Delete an owned file, or an owned empty directory."""
        fullpath = self._fullpath(key)
        if os.path.isfile(fullpath):
            self._remove_file(fullpath)
        elif os.path.isdir(fullpath):
            self._remove_dir(fullpath)
        else:
            raise NotFoundError(key)

    def __contains__(self, key: str) -> bool:
        return os.path.lexists(self._fullpath(key))

    def delete_all(self, key: str = "", *, include_foreign: bool = False) -> None:
        """Recursively delete the contents of a directory, then the directory.

        With no key, everything this instance created under the prefix goes,
        including the prefix itself if this instance created it.

        Not transactional: the walk stops at the first file or directory it
        does not own and raises :class:`NotOwnedError` naming it.  Anything
        deleted before that point stays deleted.

        ``include_foreign=True`` removes foreign files and directories too.
        """
        fullpath = self._fullpath(key)
        if not os.path.isdir(fullpath):
            raise NotFoundError(key, "directory")
        if include_foreign:
            logger.info("Deleting %s including content not created by this instance", fullpath)
        self._delete_tree(fullpath, include_foreign)

    # ── internals ────────────────────────────────────────────

    def _write(self, fullpath: str, value: bytes | str) -> None:
        existed = os.path.isfile(fullpath)
        Path(fullpath).write_bytes(as_bytes(value))
        if not existed:
            self.created_files.add(fullpath)

    def _make_parents(self, dirpath: str) -> None:
        missing: list[str] = []
        current = dirpath
        while not os.path.isdir(current):
            missing.append(current)
            current = os.path.dirname(current)
        for directory in reversed(missing):
            os.mkdir(directory)
            self.created_dirs.add(directory)

    def _remove_file(self, fullpath: str) -> None:
        if not self.owns_file(fullpath):
            raise NotOwnedError("delete", fullpath)
        os.remove(fullpath)
        self.created_files.discard(fullpath)

    def _remove_dir(self, fullpath: str) -> None:
        if not self.owns_dir(fullpath):
            raise NotOwnedError("delete", fullpath)
        if os.listdir(fullpath):
            raise NotEmptyError(fullpath)
        os.rmdir(fullpath)
        self.created_dirs.discard(fullpath)

    def _delete_tree(self, fullpath: str, include_foreign: bool) -> None:
        for name in sorted(os.listdir(fullpath)):
            child = os.path.join(fullpath, name)
            if os.path.isdir(child) and not os.path.islink(child):
                self._delete_tree(child, include_foreign)
            elif include_foreign or self.owns_file(child):
                os.remove(child)
                self.created_files.discard(child)
            else:
                raise NotOwnedError("delete", child)
        if not (include_foreign or self.owns_dir(fullpath)):
            raise NotOwnedError("delete", fullpath)
        os.rmdir(fullpath)
        self.created_dirs.discard(fullpath)
