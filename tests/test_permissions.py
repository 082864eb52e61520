"""Tests for PermissionResolver."""

import re
from datetime import UTC, datetime, timedelta

import pytest

from bucket_store import Action, Permission, PermissionResolver, ResourceKind
from bucket_store._internal.clock import require_aware
from bucket_store.permissions import Specificity

NO_UPDATE = Permission(create=True, read=True, update=False, delete=True)


@pytest.fixture
def resolver(clock):
    return PermissionResolver(clock=clock)


def test_no_rules_denies(resolver):
    decision = resolver.resolve("docs/readme", ResourceKind.OBJECT, Action.READ)
    assert not decision
    assert decision.specificity is None
    assert "No active permission rule" in decision.reason


def test_kind_rule_applies(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.read_only())
    assert resolver.has_permission("a/x", ResourceKind.OBJECT, "read")
    assert not resolver.has_permission("a/x", ResourceKind.OBJECT, "update")
    assert not resolver.has_permission("a", ResourceKind.BUCKET, "read")


def test_kind_rule_ignored_without_kind(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    assert not resolver.has_permission("a/x", None, Action.READ)


def test_exact_beats_kind(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    resolver.set_permission("docs/readme", NO_UPDATE)

    decision = resolver.resolve("docs/readme", ResourceKind.OBJECT, Action.UPDATE)
    assert not decision.allowed
    assert decision.specificity is Specificity.EXACT
    assert decision.scope == "docs/readme"
    assert "denies update" in decision.reason


def test_pattern_beats_kind(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    resolver.set_permission(re.compile(r"\.lock$"), Permission.read_only())

    decision = resolver.resolve("a/b.lock", ResourceKind.OBJECT, Action.DELETE)
    assert not decision.allowed
    assert decision.specificity is Specificity.PATTERN
    assert resolver.has_permission("a/b.txt", ResourceKind.OBJECT, Action.DELETE)


def test_exact_beats_pattern(resolver):
    resolver.set_permission(re.compile(r"^docs/"), Permission.read_only())
    resolver.set_permission("docs/draft", Permission.full())
    assert resolver.has_permission("docs/draft", ResourceKind.OBJECT, Action.UPDATE)
    assert not resolver.has_permission("docs/final", ResourceKind.OBJECT, Action.UPDATE)


def test_first_registered_pattern_wins(resolver):
    resolver.set_permission(re.compile(r"^tmp/"), Permission.full())
    resolver.set_permission(re.compile(r"\.txt$"), Permission.read_only())
    assert resolver.has_permission("tmp/a.txt", ResourceKind.OBJECT, Action.DELETE)


def test_set_permission_replaces(resolver):
    resolver.set_permission("a", Permission(read=True))
    resolver.set_permission("a", Permission(create=True))
    assert resolver.get_permission("a") == Permission(create=True)
    assert not resolver.has_permission("a", None, Action.READ)


def test_exact_deny_over_kind_allow_then_expiry(resolver, clock):
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    resolver.set_permission(
        "docs/readme", NO_UPDATE.with_expiry(clock.now() + timedelta(seconds=60))
    )

    assert not resolver.has_permission("docs/readme", ResourceKind.OBJECT, Action.UPDATE)
    assert resolver.permissions_conflict("docs/readme", ResourceKind.OBJECT)

    clock.advance(60)

    decision = resolver.resolve("docs/readme", ResourceKind.OBJECT, Action.UPDATE)
    assert decision.allowed
    assert decision.specificity is Specificity.KIND
    assert not resolver.permissions_conflict("docs/readme", ResourceKind.OBJECT)


def test_expired_rule_means_absent(resolver, clock):
    resolver.set_permission("a", Permission.full(expires_at=clock.now()))
    decision = resolver.resolve("a", ResourceKind.OBJECT, Action.READ)
    assert not decision
    assert decision.specificity is None
    # still retrievable
    assert resolver.get_permission("a") is not None


def test_explicit_now(resolver):
    expiry = datetime(2030, 1, 1, tzinfo=UTC)
    resolver.set_permission("a", Permission.full(expires_at=expiry))
    assert resolver.has_permission("a", None, "read", now=expiry - timedelta(seconds=1))
    assert not resolver.has_permission("a", None, "read", now=expiry)


def test_no_conflict_when_flags_agree(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.read_only())
    resolver.set_permission("a", Permission.read_only(expires_at=datetime(2030, 1, 1, tzinfo=UTC)))
    assert not resolver.permissions_conflict("a", ResourceKind.OBJECT)


def test_no_conflict_with_single_rule(resolver):
    resolver.set_permission("a", NO_UPDATE)
    assert not resolver.permissions_conflict("a", ResourceKind.OBJECT)
    assert not resolver.permissions_conflict("b", ResourceKind.OBJECT)


def test_set_expiry_on_name(resolver, clock):
    expiry = clock.now() + timedelta(hours=1)
    resolver.set_permission("docs/readme", NO_UPDATE)
    resolver.set_permission(re.compile(r"^docs/"), Permission.read_only())
    resolver.set_permission(re.compile(r"^other/"), Permission.read_only())
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())

    assert resolver.set_expiry("docs/readme", expiry) == 2

    assert resolver.get_permission("docs/readme") == NO_UPDATE.with_expiry(expiry)
    assert resolver.get_permission(re.compile(r"^docs/")).expires_at == expiry
    assert resolver.get_permission(re.compile(r"^other/")).expires_at is None
    assert resolver.get_permission(ResourceKind.OBJECT).expires_at is None


def test_set_expiry_on_kind_and_pattern(resolver, clock):
    expiry = clock.now() + timedelta(hours=1)
    resolver.set_permission(ResourceKind.BUCKET, Permission.full())
    assert resolver.set_expiry(ResourceKind.BUCKET, expiry) == 1
    assert resolver.get_permission(ResourceKind.BUCKET).expires_at == expiry
    assert resolver.set_expiry(re.compile("nothing"), expiry) == 0


def test_set_expiry_requires_aware_datetime(resolver):
    resolver.set_permission("a", Permission.full())
    with pytest.raises(ValueError):
        resolver.set_expiry("a", datetime(2030, 1, 1))


def test_naive_expiry_rejected():
    with pytest.raises(ValueError):
        Permission(read=True, expires_at=datetime(2030, 1, 1))


def test_scope_allows(resolver, clock):
    pattern = re.compile(r"\.log$")
    resolver.set_permission(pattern, Permission.read_only())
    assert resolver.scope_allows(pattern, Action.READ)
    assert not resolver.scope_allows(pattern, Action.DELETE)
    assert not resolver.scope_allows(ResourceKind.OBJECT, Action.READ)

    resolver.set_expiry(pattern, clock.now())
    assert not resolver.scope_allows(pattern, Action.READ)


def test_remove_permission(resolver):
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    assert resolver.remove_permission(ResourceKind.OBJECT)
    assert not resolver.remove_permission(ResourceKind.OBJECT)
    assert resolver.get_permission(ResourceKind.OBJECT) is None


def test_unsupported_scope(resolver):
    with pytest.raises(TypeError):
        resolver.set_permission(42, Permission.full())  # type: ignore[arg-type]


def test_invalid_action(resolver):
    with pytest.raises(ValueError):
        resolver.resolve("a", None, "rename")


def test_clear(resolver):
    resolver.set_permission("a", Permission.full())
    resolver.set_permission(ResourceKind.OBJECT, Permission.full())
    resolver.clear()
    assert resolver.export() == {"exact": [], "pattern": [], "kind": []}


def test_export(resolver):
    expiry = datetime(2030, 1, 1, tzinfo=UTC)
    resolver.set_permission("a", Permission.read_only(expires_at=expiry))
    resolver.set_permission(re.compile(r"^b/"), Permission.full())
    resolver.set_permission(ResourceKind.BUCKET, Permission(create=True))

    data = resolver.export()

    assert data["exact"] == [
        {
            "scope": "a",
            "create": False,
            "read": True,
            "update": False,
            "delete": False,
            "expires_at": expiry.isoformat(),
        }
    ]
    assert data["pattern"][0]["scope"] == "^b/"
    assert data["kind"][0]["scope"] == "bucket"
    assert data["kind"][0]["create"] is True


def test_permission_helpers():
    p = Permission.full()
    assert p.flags == (True, True, True, True)
    assert p.allows("delete")
    assert not Permission().allows(Action.READ)
    assert Permission.read_only().flags == (False, True, False, False)


def test_require_aware():
    require_aware(None)
    require_aware(datetime(2030, 1, 1, tzinfo=UTC))
    with pytest.raises(ValueError) as exc_info:
        require_aware(datetime(2030, 1, 1), "deadline")
    assert "deadline must be timezone-aware" in str(exc_info.value)
