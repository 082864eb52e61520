# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Runner submodule for executing batches of store operations from JSON.

Usage:
    python -m bucket_store.runner < input.json > output.json

Exports:
    Executor: Runs the operations against one BucketStore
    BackendFactory: Creates backend instances from configuration
    RunnerInput: Input schema
    RunnerOutput: Output schema
"""

from .executor import Executor
from .factory import BackendFactory, FactoryError, create_resolver
from .schema import (
    BackendConfigSchema,
    OperationResultSchema,
    OperationSchema,
    PermissionRuleSchema,
    RunnerInput,
    RunnerOutput,
    StoreConfigSchema,
)

__all__ = [
    "BackendConfigSchema",
    "BackendFactory",
    "Executor",
    "FactoryError",
    "OperationResultSchema",
    "OperationSchema",
    "PermissionRuleSchema",
    "RunnerInput",
    "RunnerOutput",
    "StoreConfigSchema",
    "create_resolver",
]
