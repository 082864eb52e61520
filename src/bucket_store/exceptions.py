"""Custom exceptions for the bucket_store package."""

from __future__ import annotations


class BucketStoreError(Exception):
    """Base exception for all bucket-store errors.

    Attributes:
        key: The resource key (or filesystem path) the error refers to.
    """

    def __init__(self, message: str, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class StoreConfigError(BucketStoreError):
    """Raised when a store or backend cannot be constructed as configured."""


class PermissionDeniedError(BucketStoreError):
    """The permission mode or the rule set disallows the action."""

    def __init__(self, action: str, key: str, reason: str = "") -> None:
        self.action = action
        msg = f"Permission denied: cannot {action} '{key}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, key)


class NotOwnedError(BucketStoreError):
    """The target exists but was not created by this instance."""

    def __init__(self, action: str, key: str) -> None:
        self.action = action
        super().__init__(
            f"Cannot {action} '{key}': it was not created by this instance", key
        )


# ── confinement ──────────────────────────────────────────────


class ConfinementError(BucketStoreError):
    """Base for keys that would leave the root bucket."""


class OutOfBoundsError(ConfinementError):
    """The normalized key does not lie strictly inside the root."""

    def __init__(self, key: str, root: str) -> None:
        self.root = root
        super().__init__(
            f"Key '{key}' does not resolve strictly inside the root bucket '{root}'", key
        )


class TraversalRejectedError(ConfinementError):
    """The key contains a parent-traversal segment."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key '{key}' contains a '..' segment", key)


# ── kind mismatch ────────────────────────────────────────────


class AmbiguousKeyError(BucketStoreError):
    """The requested kind (bucket/object) conflicts with what exists at the key."""


class KeyIsBucketError(AmbiguousKeyError):
    def __init__(self, key: str) -> None:
        super().__init__(f"'{key}' is an existing bucket and cannot be used as an object", key)


class KeyIsObjectError(AmbiguousKeyError):
    def __init__(self, key: str) -> None:
        super().__init__(f"'{key}' is an existing object and cannot be used as a bucket", key)


class InvalidKeyError(BucketStoreError):
    """The key contains a character no backend can store (NUL)."""

    def __init__(self, key: str, reason: str = "contains a NUL byte") -> None:
        super().__init__(f"Key {key!r} {reason}", key)


class InvalidObjectKeyError(InvalidKeyError):
    """An object key that ends in the delimiter."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "ends with '/' and cannot name an object")


# ── state ────────────────────────────────────────────────────


class NotFoundError(BucketStoreError):
    def __init__(self, key: str, what: str = "resource") -> None:
        super().__init__(f"{what.capitalize()} '{key}' does not exist", key)


class AlreadyExistsError(BucketStoreError):
    def __init__(self, key: str) -> None:
        super().__init__(f"'{key}' already exists", key)


class NotEmptyError(BucketStoreError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Bucket '{key}' is not empty", key)


class BackendFailureError(BucketStoreError):
    """Raised when the underlying storage fails (I/O error, refused call)."""

    def __init__(self, operation: str, key: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Backend failure during '{operation}' on '{key}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg, key)
