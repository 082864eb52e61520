"""bucket_store — a permission-gated bucket/object façade over pluggable backends.

Every operation is confined to a root bucket.  Writes are gated either by a
three-tier mode (readonly / limited / unlimited) backed by per-instance
ownership tracking, or by a rule set of exact, pattern and kind-level
permissions.
"""

from bucket_store.backends import Backend, InMemoryBackend, LocalDiskBackend
from bucket_store.exceptions import (
    AlreadyExistsError,
    AmbiguousKeyError,
    BackendFailureError,
    BucketStoreError,
    ConfinementError,
    InvalidKeyError,
    InvalidObjectKeyError,
    KeyIsBucketError,
    KeyIsObjectError,
    NotEmptyError,
    NotFoundError,
    NotOwnedError,
    OutOfBoundsError,
    PermissionDeniedError,
    StoreConfigError,
    TraversalRejectedError,
)
from bucket_store.paths import ResourceKind
from bucket_store.permissions import Action, Permission, PermissionResolver
from bucket_store.result import StoreResult
from bucket_store.store import BucketStore, PermissionMode

__all__ = [
    "Action",
    "AlreadyExistsError",
    "AmbiguousKeyError",
    "Backend",
    "BackendFailureError",
    "BucketStore",
    "BucketStoreError",
    "ConfinementError",
    "InMemoryBackend",
    "InvalidKeyError",
    "InvalidObjectKeyError",
    "KeyIsBucketError",
    "KeyIsObjectError",
    "LocalDiskBackend",
    "NotEmptyError",
    "NotFoundError",
    "NotOwnedError",
    "OutOfBoundsError",
    "Permission",
    "PermissionDeniedError",
    "PermissionMode",
    "PermissionResolver",
    "ResourceKind",
    "StoreConfigError",
    "StoreResult",
    "TraversalRejectedError",
]
