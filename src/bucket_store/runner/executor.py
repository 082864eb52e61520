# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Executor for running a batch of store operations.

Orchestrates the full execution flow:
1. Create backend from configuration
2. Build the permission rule set, if configured
3. Open the BucketStore (creating the root bucket if needed)
4. Run every operation in order
5. Return structured results
"""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

from bucket_store.exceptions import BucketStoreError
from bucket_store.result import StoreResult
from bucket_store.store import BucketStore

from .factory import BackendFactory, FactoryError, create_resolver
from .schema import OperationResultSchema, OperationSchema, RunnerInput, RunnerOutput

if TYPE_CHECKING:
    from bucket_store.backends.base import Backend

logger = logging.getLogger(__name__)

_MUTATIONS = {"create_bucket", "delete_bucket", "set", "delete", "destroy"}
_PREDICATES = {"is_bucket", "is_object", "has_bucket", "has_object"}


class Executor:
    """Runs operations from a :class:`RunnerInput` against one store.

    Pass a backend to the constructor to override backend creation
    (useful for testing).

    Example:
        executor = Executor()
        output = executor.execute(input_data)

        # For testing with an in-memory backend:
        executor = Executor(backend=InMemoryBackend())
    """

    def __init__(self, backend: Backend | None = None) -> None:
        self._injected_backend = backend

    def execute(self, input_data: RunnerInput) -> RunnerOutput:
        """Execute all operations.

        Note:
            This method catches all exceptions and returns them as
            RunnerOutput errors, ensuring valid JSON is always returned.
        """
        try:
            return self._execute_internal(input_data)
        except FactoryError as e:
            return RunnerOutput(success=False, error=str(e), error_type="FactoryError")
        except BucketStoreError as e:
            return RunnerOutput(success=False, error=str(e), error_type=type(e).__name__)
        except Exception as e:
            logger.exception("Runner failed")
            return RunnerOutput(success=False, error=str(e), error_type=type(e).__name__)

    def _execute_internal(self, input_data: RunnerInput) -> RunnerOutput:
        backend = self._injected_backend or BackendFactory().create(input_data.backend)
        config = input_data.store
        rules = create_resolver(config.rules, config.root) if config.rules is not None else None
        store = BucketStore(
            backend,
            config.root,
            mode=config.mode,
            rules=rules,
            store_id=config.store_id,
        )

        results: list[OperationResultSchema] = []
        for operation in input_data.operations:
            result = self._run_operation(store, operation)
            results.append(result)
            if not result.ok and input_data.stop_on_failure:
                break

        return RunnerOutput(success=all(r.ok for r in results), results=results)

    def _run_operation(self, store: BucketStore, operation: OperationSchema) -> OperationResultSchema:
        """Run one operation, turning raised store errors into a failed result."""
        try:
            return self._dispatch(store, operation)
        except (BucketStoreError, ValueError) as e:
            return OperationResultSchema(
                op=operation.op,
                key=operation.key,
                ok=False,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _dispatch(self, store: BucketStore, operation: OperationSchema) -> OperationResultSchema:
        op, key = operation.op, operation.key

        if op in _MUTATIONS:
            if op == "set":
                result = store.set(key, self._decode(operation))
            elif op == "destroy":
                result = store.destroy()
            else:
                result = getattr(store, op)(key)
            return self._from_store_result(result)

        if op in _PREDICATES:
            return OperationResultSchema(op=op, key=key, ok=True, value=getattr(store, op)(key))

        if op == "is_local":
            return OperationResultSchema(op=op, key=key, ok=True, value=store.is_local())

        if op == "has_permission":
            if operation.action is None:
                return self._failed(op, key, "has_permission requires 'action'", "ValueError")
            allowed = store.has_permission(key, operation.action)
            return OperationResultSchema(op=op, key=key, ok=True, value=allowed)

        if op == "permissions_conflict":
            return OperationResultSchema(
                op=op, key=key, ok=True, value=store.permissions_conflict(key)
            )

        if op == "list_contents":
            contents = store.list_contents(key)
            if contents is None:
                return self._failed(op, key, f"Bucket '{key}' does not exist or is not readable")
            return OperationResultSchema(op=op, key=key, ok=True, value=contents)

        # get
        data = store.get(key)
        if data is None:
            return self._failed(op, key, f"Object '{key}' does not exist or is not readable")
        return OperationResultSchema(op=op, key=key, ok=True, value=self._encode(data, operation))

    def _from_store_result(self, result: StoreResult) -> OperationResultSchema:
        return OperationResultSchema(
            op=result.operation,
            key=result.key,
            ok=result.ok,
            error=result.reason,
            error_type=result.error_type,
        )

    def _failed(
        self, op: str, key: str, message: str, error_type: str = "NotFoundError"
    ) -> OperationResultSchema:
        return OperationResultSchema(
            op=op, key=key, ok=False, error=message, error_type=error_type
        )

    def _decode(self, operation: OperationSchema) -> bytes:
        value = operation.value or ""
        if operation.encoding == "base64":
            return base64.b64decode(value)
        return value.encode("utf-8")

    def _encode(self, data: bytes, operation: OperationSchema) -> Any:
        if operation.encoding == "base64":
            return base64.b64encode(data).decode("ascii")
        return data.decode("utf-8", errors="replace")
