"""BucketStore — the permission-gated bucket/object façade."""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from bucket_store.backends.base import as_bytes
from bucket_store.exceptions import (
    AlreadyExistsError,
    BackendFailureError,
    BucketStoreError,
    NotEmptyError,
    NotFoundError,
    NotOwnedError,
    PermissionDeniedError,
    StoreConfigError,
)
from bucket_store.ledger import OwnershipLedger
from bucket_store.paths import ResourceKind, ResourcePath, confine, normalize_root
from bucket_store.permissions import Action, Permission, PermissionResolver, Scope
from bucket_store.result import StoreResult

if TYPE_CHECKING:
    from bucket_store.backends.base import Backend

logger = logging.getLogger(__name__)


class PermissionMode(str, Enum):
    """Three-tier write permission.

    * ``readonly``:  no create, update or delete.
    * ``limited``:   create freely; update/delete only what this instance created.
    * ``unlimited``: create, update and delete anything inside the root.
    """

    READONLY = "readonly"
    LIMITED = "limited"
    UNLIMITED = "unlimited"


class BucketStore:
    """Uniform bucket/object API over any :class:`Backend`.

    Every operation runs the same pipeline: confinement → permission →
    ownership → backend call → ledger update.  The ledger only changes after
    a successful backend call.

    Two permission models are supported:

    * **three-tier** (default): ``mode`` is one of :class:`PermissionMode`,
      and under ``limited`` the ownership ledger gates updates and deletes;
    * **rule-based**: pass a :class:`PermissionResolver` as ``rules``; every
      action, reads included, is resolved against it and ``mode`` is ignored.

    Mutations return a :class:`StoreResult` instead of raising.  Reads raise
    confinement and kind-mismatch errors.

    The root bucket is created at construction if absent.  Construction fails
    with :class:`StoreConfigError` if the root is an object or cannot be
    created.

    Instances are not thread-safe and keep no state on disk: a new instance
    over the same root starts with an empty ledger and treats all existing
    content as foreign.

    Parameters:
        backend:  Storage provider.
        root:     Name of the root bucket, e.g. ``"/tmp/store"``.
        mode:     Three-tier permission mode.
        rules:    Rule set; selects the rule-based model when given.
        store_id: Free-form identifier of this store instance.
    """

    def __init__(
        self,
        backend: Backend,
        root: str,
        *,
        mode: PermissionMode | str = PermissionMode.LIMITED,
        rules: PermissionResolver | None = None,
        store_id: str = "",
    ) -> None:
        try:
            self.mode = PermissionMode(mode)
        except ValueError as e:
            allowed = ", ".join(m.value for m in PermissionMode)
            raise StoreConfigError(f"Permission mode must be one of {allowed}, got {mode!r}") from e
        self.backend = backend
        self.root = normalize_root(root)
        self.rules = rules
        self.id = store_id
        self.ledger = OwnershipLedger()
        self._open_root()

    @classmethod
    def with_rules(
        cls,
        backend: Backend,
        root: str,
        rules: PermissionResolver | None = None,
        store_id: str = "",
    ) -> BucketStore:
        """Build a store governed by a rule set instead of a permission mode."""
        return cls(backend, root, rules=rules or PermissionResolver(), store_id=store_id)

    def __repr__(self) -> str:
        model = "rules" if self.rules is not None else self.mode.value
        return f"{type(self).__name__}(root={self.root!r}, permission={model}, backend={self.backend!r})"

    def _open_root(self) -> None:
        root = ResourcePath(self.root, "", self.root)
        try:
            if self.backend.is_object(self.root):
                raise StoreConfigError(f"Root '{self.root}' already exists as an object")
            if self.backend.is_bucket(self.root):
                return
            self._check_permission(Action.CREATE, root, ResourceKind.BUCKET)
            if not self.backend.create_bucket(self.root):
                raise StoreConfigError(
                    f"Root bucket '{self.root}' does not exist and could not be created"
                )
        except PermissionDeniedError as e:
            raise StoreConfigError(
                f"Root bucket '{self.root}' does not exist and may not be created: {e}"
            ) from e
        except OSError as e:
            raise StoreConfigError(f"Cannot open root bucket '{self.root}': {e}") from e
        self.ledger.record_bucket(root.name)
        logger.info("Created root bucket %s", self.root)

    # ── gating ───────────────────────────────────────────────

    def _check_permission(self, action: Action, res: ResourcePath, kind: ResourceKind) -> None:
        if self.rules is not None:
            decision = self.rules.resolve(res.name, kind, action)
            if not decision.allowed:
                raise PermissionDeniedError(action.value, res.name, decision.reason)
            return
        if action is not Action.READ and self.mode is PermissionMode.READONLY:
            raise PermissionDeniedError(action.value, res.name, "store is read-only")

    def _check_ownership(self, action: Action, res: ResourcePath, kind: ResourceKind) -> None:
        if self.rules is not None or self.mode is not PermissionMode.LIMITED:
            return
        if kind is ResourceKind.BUCKET:
            owned = self.ledger.owns_bucket(res.name)
        else:
            owned = self.ledger.owns_object(res.name)
        if not owned:
            raise NotOwnedError(action.value, res.name)

    def _readable(self, res: ResourcePath, kind: ResourceKind) -> bool:
        try:
            self._check_permission(Action.READ, res, kind)
        except PermissionDeniedError as e:
            logger.warning("%s", e)
            return False
        return True

    @contextmanager
    def _backend_errors(self, operation: str, key: str) -> Iterator[None]:
        try:
            yield
        except OSError as e:
            raise BackendFailureError(operation, key, str(e)) from e

    def _mutate(self, operation: str, key: str, fn: Callable[..., None], *args: Any) -> StoreResult:
        try:
            with self._backend_errors(operation, key):
                fn(key, *args)
        except BackendFailureError as e:
            logger.warning("%s", e)
            return StoreResult.failure(operation, key, e)
        except BucketStoreError as e:
            logger.info("%s '%s' refused: %s", operation, key, e)
            return StoreResult.failure(operation, key, e)
        logger.debug("%s '%s' ok", operation, key)
        return StoreResult.success(operation, key)

    def _confine(self, key: str, kind: ResourceKind | None = None, **kwargs: Any) -> ResourcePath:
        with self._backend_errors("confine", key):
            backend = self.backend if kind is not None else None
            return confine(self.root, key, kind, backend, **kwargs)

    # ── buckets ──────────────────────────────────────────────

    def create_bucket(self, name: str) -> StoreResult:
        """Create an empty bucket inside an existing bucket."""
        return self._mutate("create_bucket", name, self._create_bucket)

    def _create_bucket(self, name: str) -> None:
        res = self._confine(name, ResourceKind.BUCKET, allow_root=False)
        self._check_permission(Action.CREATE, res, ResourceKind.BUCKET)
        if self.backend.is_bucket(res.path):
            raise AlreadyExistsError(res.name)
        if not self.backend.is_bucket(res.parent_path):
            raise NotFoundError(res.parent, "bucket")
        if not self.backend.create_bucket(res.path):
            raise BackendFailureError("create_bucket", res.name, "backend refused")
        self.ledger.record_bucket(res.name)

    def list_contents(self, name: str = "") -> list[str] | None:
        """Names of everything in the bucket, created by this instance or not.

        Returns ``None`` if the bucket does not exist (or reading it is denied
        by the rule set).  With no name, the root bucket is listed.
        """
        res = self._confine(name, ResourceKind.BUCKET)
        if not self._readable(res, ResourceKind.BUCKET):
            return None
        with self._backend_errors("list_contents", name):
            return self.backend.list(res.path)

    def delete_bucket(self, name: str) -> StoreResult:
        """Delete an empty bucket.  The root can only go through :meth:`destroy`."""
        return self._mutate("delete_bucket", name, self._delete_bucket)

    def _delete_bucket(self, name: str) -> None:
        res = self._confine(name, ResourceKind.BUCKET, allow_root=False)
        self._check_permission(Action.DELETE, res, ResourceKind.BUCKET)
        contents = self.backend.list(res.path)
        if contents is None:
            raise NotFoundError(res.name, "bucket")
        self._check_ownership(Action.DELETE, res, ResourceKind.BUCKET)
        if contents:
            raise NotEmptyError(res.name)
        if not self.backend.delete_bucket(res.path):
            raise BackendFailureError("delete_bucket", res.name, "backend refused")
        self.ledger.forget_bucket(res.name)

    # ── objects ──────────────────────────────────────────────

    def get(self, key: str) -> bytes | None:
        """Return the object's bytes, or ``None`` if it does not exist."""
        res = self._confine(key, ResourceKind.OBJECT)
        if not self._readable(res, ResourceKind.OBJECT):
            return None
        with self._backend_errors("get", key):
            return self.backend.read_object(res.path)

    def set(self, key: str, value: bytes | str) -> StoreResult:
        """Create or overwrite an object.  The containing bucket must exist.

        Raises:
            TypeError: *value* is neither ``bytes`` nor ``str``.
        """
        return self._mutate("set", key, self._set, as_bytes(value))

    def _set(self, key: str, value: bytes) -> None:
        res = self._confine(key, ResourceKind.OBJECT, allow_root=False)
        exists = self.backend.is_object(res.path)
        action = Action.UPDATE if exists else Action.CREATE
        self._check_permission(action, res, ResourceKind.OBJECT)
        if exists:
            self._check_ownership(action, res, ResourceKind.OBJECT)
        elif not self.backend.is_bucket(res.parent_path):
            raise NotFoundError(res.parent, "bucket")
        if not self.backend.write_object(res.path, value):
            raise BackendFailureError("set", res.name, "backend refused the write")
        self.ledger.record_object(res.name)

    def delete(self, key: str) -> StoreResult:
        return self._mutate("delete", key, self._delete)

    def _delete(self, key: str) -> None:
        res = self._confine(key, ResourceKind.OBJECT, allow_root=False)
        self._check_permission(Action.DELETE, res, ResourceKind.OBJECT)
        if not self.backend.is_object(res.path):
            raise NotFoundError(res.name, "object")
        self._check_ownership(Action.DELETE, res, ResourceKind.OBJECT)
        if not self.backend.delete_object(res.path):
            raise BackendFailureError("delete", res.name, "backend refused")
        self.ledger.forget_object(res.name)

    # ── teardown ─────────────────────────────────────────────

    def destroy(self) -> StoreResult:
        """Delete all contents depth-first, then the root bucket itself.

        Children go through the same gated operations as ``delete`` and
        ``delete_bucket``.  The walk stops at the first child that cannot be
        removed; the result's error names it and earlier deletions stay.
        """
        return self._mutate("destroy", "", self._destroy)

    def _destroy(self, _key: str) -> None:
        root = ResourcePath(self.root, "", self.root)
        self._check_permission(Action.DELETE, root, ResourceKind.BUCKET)
        self._check_ownership(Action.DELETE, root, ResourceKind.BUCKET)
        self._empty_bucket(root)
        if not self.backend.delete_bucket(self.root):
            raise BackendFailureError("destroy", self.root, "backend refused")
        self.ledger.clear()
        logger.info("Destroyed root bucket %s", self.root)

    def _empty_bucket(self, res: ResourcePath) -> None:
        for child in self.backend.list(res.path) or []:
            name = posixpath.join(res.name, child)
            if self.backend.is_bucket(posixpath.join(res.path, child)):
                self._empty_bucket(ResourcePath(self.root, name, posixpath.join(res.path, child)))
                self._delete_bucket(name)
            else:
                self._delete(name)

    # ── queries ──────────────────────────────────────────────

    def is_local(self) -> bool:
        """``True`` if the backend lives on this machine."""
        return self.backend.is_local()

    def is_bucket(self, name: str) -> bool:
        """``True`` if *name* is a bucket in the backend, whoever created it."""
        res = self._confine(name)
        with self._backend_errors("is_bucket", name):
            return self.backend.is_bucket(res.path)

    def is_object(self, name: str) -> bool:
        """``True`` if *name* is an object in the backend, whoever created it."""
        res = self._confine(name)
        with self._backend_errors("is_object", name):
            return self.backend.is_object(res.path)

    def has_bucket(self, name: str) -> bool:
        """``True`` if this instance created the bucket."""
        return self.ledger.owns_bucket(self._confine(name).name)

    def has_object(self, name: str) -> bool:
        """``True`` if this instance created the object."""
        return self.ledger.owns_object(self._confine(name).name)

    # ── rule-based permissions ───────────────────────────────

    def _require_rules(self) -> PermissionResolver:
        if self.rules is None:
            raise StoreConfigError(
                f"Store uses the '{self.mode.value}' permission mode and has no rule set"
            )
        return self.rules

    def _scope(self, scope: Scope) -> Scope:
        """Resource-key scopes are normalized relative to the root; others pass through."""
        if isinstance(scope, str) and not isinstance(scope, ResourceKind):
            return self._confine(scope).name
        return scope

    def _kind_of(self, name: str) -> ResourceKind | None:
        res = self._confine(name)
        with self._backend_errors("kind", name):
            if self.backend.is_bucket(res.path):
                return ResourceKind.BUCKET
            if self.backend.is_object(res.path):
                return ResourceKind.OBJECT
        return None

    def set_permission(self, scope: Scope, permission: Permission) -> None:
        """Register *permission* for a resource key, a ``re.Pattern`` or a :class:`ResourceKind`."""
        self._require_rules().set_permission(self._scope(scope), permission)

    def get_permission(self, scope: Scope) -> Permission | None:
        return self._require_rules().get_permission(self._scope(scope))

    def remove_permission(self, scope: Scope) -> bool:
        return self._require_rules().remove_permission(self._scope(scope))

    def set_expiry(self, scope: Scope, expires_at: datetime | None) -> int:
        """Set the expiry of every rule applying to *scope*; see :meth:`PermissionResolver.set_expiry`."""
        return self._require_rules().set_expiry(self._scope(scope), expires_at)

    def has_permission(
        self,
        scope: Scope,
        action: Action | str,
        kind: ResourceKind | None = None,
    ) -> bool:
        """Whether *action* is currently allowed for *scope*.

        For a resource key the full resolution runs, with the kind taken from
        the backend unless given.  A key that does not exist yet is resolved
        as an object for ``create`` and ``update``, the same way :meth:`set`
        resolves it; for other actions it only matches exact and pattern
        rules.  For a pattern or kind scope only the rule stored under that
        scope is consulted.
        """
        rules = self._require_rules()
        if isinstance(scope, (ResourceKind, re.Pattern)):
            return rules.scope_allows(scope, action)
        action = Action(action)
        name = self._scope(scope)
        kind = kind or self._kind_of(scope)
        if kind is None and action in (Action.CREATE, Action.UPDATE):
            kind = ResourceKind.OBJECT
        return rules.has_permission(name, kind, action)

    def permissions_conflict(self, key: str, kind: ResourceKind | None = None) -> bool:
        """``True`` if two or more active rules covering *key* disagree."""
        rules = self._require_rules()
        return rules.permissions_conflict(self._scope(key), kind or self._kind_of(key))
