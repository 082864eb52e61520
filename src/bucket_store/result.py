"""StoreResult — the outcome of a single mutating store operation."""

from __future__ import annotations

from dataclasses import dataclass

from bucket_store.exceptions import BucketStoreError


@dataclass(frozen=True)
class StoreResult:
    """Immutable result returned by ``create_bucket``, ``set``, ``delete`` etc.

    A result is truthy iff the operation succeeded, so callers can branch on
    it directly (``if store.set("a/x", b"1"): ...``).

    Attributes:
        ok:        ``True`` if the backend call ran and succeeded.
        operation: Name of the façade operation (``"set"``, ``"delete_bucket"`` ...).
        key:       Resource key as given by the caller.
        error:     The exception describing the failure, ``None`` on success.
    """

    ok: bool
    operation: str
    key: str = ""
    error: BucketStoreError | None = None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def reason(self) -> str:
        return str(self.error) if self.error else ""

    @property
    def error_type(self) -> str:
        return type(self.error).__name__ if self.error else ""

    def raise_for_error(self) -> None:
        """Raise the captured error, if any."""
        if self.error is not None:
            raise self.error

    # ── Factory helpers ──────────────────────────────────────

    @staticmethod
    def success(operation: str, key: str = "") -> StoreResult:
        return StoreResult(ok=True, operation=operation, key=key)

    @staticmethod
    def failure(operation: str, key: str, error: BucketStoreError) -> StoreResult:
        return StoreResult(ok=False, operation=operation, key=key, error=error)
