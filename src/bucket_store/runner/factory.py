# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Factories turning runner configuration into backends and rule sets.

Uses the Registry pattern to map backend type strings to backend classes,
allowing extensibility without modifying factory code.
"""

from __future__ import annotations

import re
from typing import ClassVar

from bucket_store.backends import Backend, InMemoryBackend, LocalDiskBackend
from bucket_store.exceptions import BucketStoreError
from bucket_store.paths import ResourceKind, confine, normalize_root
from bucket_store.permissions import Permission, PermissionResolver

from .schema import BackendConfigSchema, PermissionRuleSchema


class FactoryError(Exception):
    """Raised when a backend or rule set cannot be built from configuration."""

    pass


class BackendFactory:
    """Creates backend instances from configuration.

    Example:
        factory = BackendFactory()
        backend = factory.create(
            BackendConfigSchema(type="local_disk", config={"prefix": "/tmp/data"})
        )
    """

    # Class-level registry mapping type strings to backend classes
    _registry: ClassVar[dict[str, type[Backend]]] = {
        "local_disk": LocalDiskBackend,
        "memory": InMemoryBackend,
    }

    @classmethod
    def register(cls, type_name: str, backend_class: type[Backend]) -> None:
        """Register a custom backend type.

        Args:
            type_name: Type string to use in configuration
            backend_class: Backend class to instantiate

        Raises:
            ValueError: If backend_class does not implement the Backend contract
        """
        if not (isinstance(backend_class, type) and issubclass(backend_class, Backend)):
            raise ValueError(
                f"{backend_class!r} cannot be registered as '{type_name}': "
                "it is not a Backend subclass"
            )
        cls._registry[type_name] = backend_class

    @classmethod
    def registered_types(cls) -> list[str]:
        """Return list of registered backend type names."""
        return list(cls._registry.keys())

    def create(self, config: BackendConfigSchema) -> Backend:
        """Instantiate the backend described by *config*.

        Raises:
            FactoryError: If the type is unknown or construction fails
        """
        backend_class = self._registry.get(config.type)
        if not backend_class:
            available = ", ".join(sorted(self.registered_types()))
            raise FactoryError(
                f"Unknown backend type: '{config.type}'. Available types: {available}"
            )
        try:
            return backend_class(**config.config)
        except Exception as e:
            raise FactoryError(f"Failed to create backend of type '{config.type}': {e}") from e


def create_resolver(rules: list[PermissionRuleSchema], root: str) -> PermissionResolver:
    """Build a rule set; "id" scopes are keys relative to *root*.

    Raises:
        FactoryError: On an invalid pattern, kind or key
    """
    resolver = PermissionResolver()
    root = normalize_root(root)
    for rule in rules:
        permission = Permission(
            create=rule.create,
            read=rule.read,
            update=rule.update,
            delete=rule.delete,
            expires_at=rule.expires_at,
        )
        try:
            if rule.scope_type == "pattern":
                resolver.set_permission(re.compile(rule.scope), permission)
            elif rule.scope_type == "kind":
                resolver.set_permission(ResourceKind(rule.scope), permission)
            else:
                resolver.set_permission(confine(root, rule.scope).name, permission)
        except (re.error, ValueError, BucketStoreError) as e:
            raise FactoryError(f"Invalid {rule.scope_type} rule '{rule.scope}': {e}") from e
    return resolver
