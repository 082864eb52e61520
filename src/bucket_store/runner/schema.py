# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Data transfer objects for runner input/output.

These Pydantic models define the JSON document the runner reads from stdin
and the one it writes to stdout.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from bucket_store.permissions import Action
from bucket_store.store import PermissionMode

OperationName = Literal[
    "create_bucket",
    "list_contents",
    "delete_bucket",
    "get",
    "set",
    "delete",
    "destroy",
    "is_bucket",
    "is_object",
    "has_bucket",
    "has_object",
    "is_local",
    "has_permission",
    "permissions_conflict",
]


class BackendConfigSchema(BaseModel):
    """Storage backend configuration.

    Attributes:
        type: Registered backend type ("memory" or "local_disk").
        config: Keyword arguments for the backend constructor
                (e.g. ``{"prefix": "/var/data"}`` for local_disk).
    """

    type: str = "memory"
    config: dict[str, Any] = Field(default_factory=dict)


class PermissionRuleSchema(BaseModel):
    """One permission rule.

    Attributes:
        scope: Resource key, regular expression, or kind ("bucket"/"object"),
               depending on ``scope_type``.
        scope_type: "id", "pattern" or "kind".
        create, read, update, delete: CRUD flags.
        expires_at: Optional expiry; naive timestamps are taken as UTC.
    """

    scope: str
    scope_type: Literal["id", "pattern", "kind"] = "id"
    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class StoreConfigSchema(BaseModel):
    """Store configuration.

    Attributes:
        root: Root bucket name.
        mode: Three-tier permission mode (ignored when ``rules`` is set).
        rules: Permission rules; selects the rule-based model when present.
        store_id: Identifier of the store instance.
    """

    root: str
    mode: PermissionMode = PermissionMode.LIMITED
    rules: list[PermissionRuleSchema] | None = None
    store_id: str = ""


class OperationSchema(BaseModel):
    """A single store operation.

    Attributes:
        op: Store method to call.
        key: Bucket name or object key.
        value: Object value for ``set``.
        encoding: How ``value`` is encoded in JSON, both ways.
        action: Action for ``has_permission``.
    """

    op: OperationName
    key: str = ""
    value: str | None = None
    encoding: Literal["utf-8", "base64"] = "utf-8"
    action: Action | None = None


class OperationResultSchema(BaseModel):
    """Outcome of one operation.

    Attributes:
        op: Operation name.
        key: Key the operation was called with.
        ok: Whether the operation succeeded.
        value: Returned value for queries and reads.
        error: Error message (on failure).
        error_type: Error class name (on failure).
    """

    op: str
    key: str = ""
    ok: bool
    value: Any = None
    error: str = ""
    error_type: str = ""


class RunnerInput(BaseModel):
    """Complete input read from stdin.

    Attributes:
        backend: Backend configuration.
        store: Store configuration.
        operations: Operations to run, in order, against one store.
        stop_on_failure: Stop at the first failed operation.
    """

    backend: BackendConfigSchema = Field(default_factory=BackendConfigSchema)
    store: StoreConfigSchema
    operations: list[OperationSchema] = Field(default_factory=list)
    stop_on_failure: bool = False


class RunnerOutput(BaseModel):
    """Complete output written to stdout.

    The runner always outputs valid JSON matching this schema, even on errors.

    Attributes:
        success: Whether every operation succeeded.
        results: Per-operation results.
        error: Error message when the run could not start.
        error_type: Error class name when the run could not start.
    """

    success: bool
    results: list[OperationResultSchema] = Field(default_factory=list)
    error: str = ""
    error_type: str = ""
