"""Rule-based permissions — exact, pattern and kind-level rules with expiry."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from bucket_store._internal.clock import Clock, SystemClock, require_aware
from bucket_store.paths import ResourceKind

if TYPE_CHECKING:
    from collections.abc import Iterator

Scope = str | re.Pattern[str] | ResourceKind


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Specificity(IntEnum):
    """Rule precedence.  Higher wins."""

    KIND = 1
    PATTERN = 2
    EXACT = 3


@dataclass(frozen=True)
class Permission:
    """CRUD flags plus an optional expiry.

    Attributes:
        create, read, update, delete: Whether each action is allowed.
        expires_at: Timezone-aware instant after which the rule is treated
                    as absent.  ``None`` never expires.
    """

    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        require_aware(self.expires_at, "Permission.expires_at")

    @classmethod
    def full(cls, expires_at: datetime | None = None) -> Permission:
        return cls(True, True, True, True, expires_at)

    @classmethod
    def read_only(cls, expires_at: datetime | None = None) -> Permission:
        return cls(read=True, expires_at=expires_at)

    @property
    def flags(self) -> tuple[bool, bool, bool, bool]:
        return (self.create, self.read, self.update, self.delete)

    def allows(self, action: Action | str) -> bool:
        return bool(getattr(self, Action(action).value))

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def with_expiry(self, expires_at: datetime | None) -> Permission:
        return replace(self, expires_at=expires_at)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of resolving one (resource, action) pair.

    Attributes:
        allowed:     ``True`` if the winning rule grants the action.
        specificity: Precedence level of the winning rule (``None`` if none matched).
        scope:       Scope key of the winning rule.
        reason:      Explanation, mainly useful on denial.
    """

    allowed: bool
    specificity: Specificity | None = None
    scope: Scope | None = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class _Match:
    specificity: Specificity
    scope: Scope
    permission: Permission


class PermissionResolver:
    """Holds permission rules and resolves them against resources.

    Three rule tables are kept, one per scope type:

    * **exact**: keyed by a resource name (``str``);
    * **pattern**: keyed by a compiled regex, matched with ``search`` against
      the resource name;
    * **kind**: keyed by :class:`ResourceKind`.

    Resolution picks the single most specific non-expired matching rule
    (exact > pattern > kind).  Among several matching patterns the one
    registered first wins.  No matching rule means deny.

    Parameters:
        clock: Injectable clock used when ``now`` is not passed explicitly.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._exact: dict[str, Permission] = {}
        self._patterns: dict[re.Pattern[str], Permission] = {}
        self._kinds: dict[ResourceKind, Permission] = {}
        self._clock = clock or SystemClock()

    def _table(self, scope: Scope) -> dict:
        # ResourceKind subclasses str, so it must be tested first.
        if isinstance(scope, ResourceKind):
            return self._kinds
        if isinstance(scope, re.Pattern):
            return self._patterns
        if isinstance(scope, str):
            return self._exact
        raise TypeError(f"Unsupported permission scope: {scope!r}")

    # ── rule management ──────────────────────────────────────

    def set_permission(self, scope: Scope, permission: Permission) -> None:
        """Store *permission* for *scope*, replacing any existing rule (flags are not merged)."""
        self._table(scope)[scope] = permission

    def get_permission(self, scope: Scope) -> Permission | None:
        """Return the rule stored for exactly this scope, expired or not."""
        return self._table(scope).get(scope)

    def remove_permission(self, scope: Scope) -> bool:
        return self._table(scope).pop(scope, None) is not None

    def set_expiry(self, scope: Scope, expires_at: datetime | None) -> int:
        """Change the expiry of every registered rule that applies to *scope*.

        For a pattern or kind scope that is the one rule stored under it.  For
        a resource name it is the exact rule plus every pattern matching the
        name; kind rules cover whole resource types and are left alone.
        Flags are never touched.

        Returns:
            Number of rules updated.
        """
        require_aware(expires_at)
        if isinstance(scope, (ResourceKind, re.Pattern)):
            targets = [(self._table(scope), scope)]
        else:
            targets = [(self._exact, scope)]
            targets += [(self._patterns, p) for p in self._patterns if p.search(scope)]

        updated = 0
        for table, key in targets:
            if key in table:
                table[key] = table[key].with_expiry(expires_at)
                updated += 1
        return updated

    def clear(self) -> None:
        self._exact.clear()
        self._patterns.clear()
        self._kinds.clear()

    # ── evaluation ───────────────────────────────────────────

    def _matches(
        self,
        resource_id: str,
        kind: ResourceKind | None,
        now: datetime,
    ) -> Iterator[_Match]:
        """Yield non-expired matching rules, most specific first."""
        rule = self._exact.get(resource_id)
        if rule is not None and not rule.is_expired(now):
            yield _Match(Specificity.EXACT, resource_id, rule)

        for pattern, rule in self._patterns.items():
            if pattern.search(resource_id) and not rule.is_expired(now):
                yield _Match(Specificity.PATTERN, pattern, rule)

        if kind is not None:
            rule = self._kinds.get(kind)
            if rule is not None and not rule.is_expired(now):
                yield _Match(Specificity.KIND, kind, rule)

    def resolve(
        self,
        resource_id: str,
        kind: ResourceKind | None,
        action: Action | str,
        now: datetime | None = None,
    ) -> AccessDecision:
        action = Action(action)
        now = now or self._clock.now()
        winner = next(self._matches(resource_id, kind, now), None)
        if winner is None:
            return AccessDecision(
                allowed=False,
                reason=f"No active permission rule covers '{resource_id}'",
            )
        if winner.permission.allows(action):
            return AccessDecision(True, winner.specificity, winner.scope)
        return AccessDecision(
            False,
            winner.specificity,
            winner.scope,
            f"{winner.specificity.name.lower()} rule {winner.scope!r} denies {action.value}",
        )

    def has_permission(
        self,
        resource_id: str,
        kind: ResourceKind | None,
        action: Action | str,
        now: datetime | None = None,
    ) -> bool:
        return self.resolve(resource_id, kind, action, now).allowed

    def scope_allows(
        self,
        scope: Scope,
        action: Action | str,
        now: datetime | None = None,
    ) -> bool:
        """Whether the rule stored under exactly *scope* is active and grants *action*."""
        rule = self.get_permission(scope)
        now = now or self._clock.now()
        return rule is not None and not rule.is_expired(now) and rule.allows(action)

    def permissions_conflict(
        self,
        resource_id: str,
        kind: ResourceKind | None = None,
        now: datetime | None = None,
    ) -> bool:
        """``True`` iff two or more active rules for the resource disagree on a flag."""
        now = now or self._clock.now()
        flags = {m.permission.flags for m in self._matches(resource_id, kind, now)}
        return len(flags) > 1

    def export(self) -> dict[str, list[dict]]:
        """Return a JSON-serializable snapshot of all registered rules."""

        def dump(scope: str, permission: Permission) -> dict:
            return {
                "scope": scope,
                "create": permission.create,
                "read": permission.read,
                "update": permission.update,
                "delete": permission.delete,
                "expires_at": permission.expires_at.isoformat() if permission.expires_at else None,
            }

        return {
            "exact": [dump(k, v) for k, v in self._exact.items()],
            "pattern": [dump(k.pattern, v) for k, v in self._patterns.items()],
            "kind": [dump(k.value, v) for k, v in self._kinds.items()],
        }
