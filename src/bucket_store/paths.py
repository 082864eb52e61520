"""Path confinement — keep every key inside the root bucket.

Resource keys are ``/``-delimited regardless of platform.  ``confine`` is the
single gate every façade operation passes through before anything else:

* any ``..`` segment is rejected *before* normalization, even when the
  normalized key would stay inside the root;
* the normalized key must be the root itself or lie below it;
* when a backend is supplied, the requested kind (bucket vs. object) must not
  clash with what already exists at the key.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from bucket_store.exceptions import (
    InvalidKeyError,
    InvalidObjectKeyError,
    KeyIsBucketError,
    KeyIsObjectError,
    OutOfBoundsError,
    StoreConfigError,
    TraversalRejectedError,
)

if TYPE_CHECKING:
    from bucket_store.backends.base import Backend

DELIMITER = "/"
PARENT_SEGMENT = ".."
NUL = "\x00"


class ResourceKind(str, Enum):
    """What a key names: a container or a leaf value."""

    BUCKET = "bucket"
    OBJECT = "object"


@dataclass(frozen=True)
class ResourcePath:
    """A key that has passed confinement.

    Attributes:
        root: Normalized root identifier.
        name: Normalized key relative to the root; ``""`` is the root itself.
        path: Absolute resource path handed to the backend.
    """

    root: str
    name: str
    path: str

    @property
    def is_root(self) -> bool:
        return self.name == ""

    @property
    def parent(self) -> str:
        return split_name(self.name)[0]

    @property
    def short_name(self) -> str:
        return split_name(self.name)[1]

    @property
    def parent_path(self) -> str:
        return posixpath.dirname(self.path)


def has_traversal(key: str) -> bool:
    return PARENT_SEGMENT in key.split(DELIMITER)


def split_name(name: str) -> tuple[str, str]:
    """Split a relative name into ``(parent, short_name)``.

    Top-level names have the root (``""``) as parent.
    """
    parent, _, short = name.rpartition(DELIMITER)
    return parent, short


def normalize_root(root: str) -> str:
    if has_traversal(root):
        raise TraversalRejectedError(root)
    if NUL in root:
        raise InvalidKeyError(root)
    normalized = posixpath.normpath(root) if root else ""
    if normalized in ("", "."):
        raise StoreConfigError("Root bucket name must not be empty")
    return normalized


def confine(
    root: str,
    key: str,
    kind: ResourceKind | None = None,
    backend: Backend | None = None,
    *,
    allow_root: bool = True,
) -> ResourcePath:
    """Resolve *key* under *root*, or raise.

    Args:
        root:       Normalized root identifier (see ``normalize_root``).
        key:        Caller-supplied key relative to the root.
        kind:       Kind the caller intends to operate on, if any.
        backend:    When given, consulted to detect kind clashes.
        allow_root: If ``False``, a key resolving to the root itself is
                    rejected (mutations never target the root).

    Raises:
        TraversalRejectedError: *key* has a ``..`` segment.
        InvalidKeyError:        *key* contains a NUL byte.
        OutOfBoundsError:       *key* escapes the root (e.g. an absolute key).
        InvalidObjectKeyError:  object key ending in ``/``.
        KeyIsBucketError:       object key where a bucket exists.
        KeyIsObjectError:       bucket key where an object exists.
    """
    if has_traversal(key):
        raise TraversalRejectedError(key)
    if NUL in key:
        raise InvalidKeyError(key)

    joined = posixpath.normpath(posixpath.join(root, key))
    prefix = root if root.endswith(DELIMITER) else root + DELIMITER
    if joined == root:
        name = ""
    elif joined.startswith(prefix):
        name = joined[len(prefix) :]
    else:
        raise OutOfBoundsError(key, root)

    if not name and not allow_root:
        raise OutOfBoundsError(key, root)

    if kind is ResourceKind.OBJECT and key.endswith(DELIMITER):
        if backend is not None and backend.is_bucket(joined):
            raise KeyIsBucketError(name)
        raise InvalidObjectKeyError(key)

    if backend is not None:
        if kind is ResourceKind.OBJECT and backend.is_bucket(joined):
            raise KeyIsBucketError(name)
        if kind is ResourceKind.BUCKET and backend.is_object(joined):
            raise KeyIsObjectError(name)

    return ResourcePath(root=root, name=name, path=joined)
