"""Tests for StoreResult."""

import pytest

from bucket_store import NotOwnedError, StoreResult


def test_success_factory():
    r = StoreResult.success("set", "a/x")
    assert r.ok is True
    assert r.operation == "set"
    assert r.key == "a/x"
    assert r.error is None
    assert r.reason == ""
    assert r.error_type == ""


def test_failure_factory():
    err = NotOwnedError("delete", "a/x")
    r = StoreResult.failure("delete", "a/x", err)
    assert r.ok is False
    assert r.error is err
    assert r.error_type == "NotOwnedError"
    assert "not created by this instance" in r.reason


def test_truthiness():
    assert StoreResult.success("set")
    assert not StoreResult.failure("set", "x", NotOwnedError("update", "x"))


def test_raise_for_error():
    StoreResult.success("set", "x").raise_for_error()

    r = StoreResult.failure("set", "x", NotOwnedError("update", "x"))
    with pytest.raises(NotOwnedError):
        r.raise_for_error()


def test_frozen():
    r = StoreResult.success("set")
    with pytest.raises(AttributeError):
        r.ok = False  # type: ignore[misc]
