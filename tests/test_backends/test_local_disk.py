"""Tests for LocalDiskBackend."""

import os

import pytest

from bucket_store import (
    InvalidKeyError,
    InvalidObjectKeyError,
    KeyIsBucketError,
    LocalDiskBackend,
    NotEmptyError,
    NotFoundError,
    NotOwnedError,
    StoreConfigError,
    TraversalRejectedError,
)


def test_missing_prefix_is_created_and_owned(tmp_path):
    disk = LocalDiskBackend(tmp_path / "new")
    assert (tmp_path / "new").is_dir()
    assert disk.prefix.endswith(os.sep)
    assert disk.owns_dir(str(tmp_path / "new"))


def test_existing_prefix_is_not_owned(disk, tmp_path):
    assert not disk.owns_dir(str(tmp_path))


def test_empty_prefix_rejected():
    with pytest.raises(StoreConfigError):
        LocalDiskBackend("")


# ── contract ─────────────────────────────────────────────────


def test_create_bucket(disk, tmp_path):
    assert disk.create_bucket("/a")
    assert (tmp_path / "a").is_dir()
    assert disk.is_bucket("a")
    assert disk.owns_dir(str(tmp_path / "a"))


def test_create_bucket_refusals(disk, tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "f").write_bytes(b"x")
    assert not disk.create_bucket("/a")
    assert not disk.create_bucket("/f")
    assert not disk.create_bucket("/missing/b")
    assert not (tmp_path / "missing").exists()


def test_write_object_needs_parent(disk, tmp_path):
    assert not disk.write_object("/missing/x", b"1")
    assert not (tmp_path / "missing").exists()


def test_write_and_read_object(disk, tmp_path):
    assert disk.write_object("/x", b"1")
    assert disk.read_object("/x") == b"1"
    assert disk.is_object("x")
    assert (tmp_path / "x").read_bytes() == b"1"


def test_read_object_on_directory(disk, tmp_path):
    (tmp_path / "d").mkdir()
    assert disk.read_object("/d") is None
    assert disk.read_object("/nope") is None


def test_list(disk, tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a").write_bytes(b"")
    assert disk.list("/") == ["a", "b"]
    assert disk.list("/a") is None


def test_delete_owned(disk):
    disk.create_bucket("/a")
    disk.write_object("/a/x", b"1")
    assert disk.delete_object("/a/x")
    assert disk.delete_bucket("/a")
    assert not disk.is_bucket("/a")


def test_delete_missing(disk):
    assert not disk.delete_object("/nope")
    assert not disk.delete_bucket("/nope")


def test_delete_foreign_refused(disk, tmp_path):
    (tmp_path / "d").mkdir()
    (tmp_path / "f").write_bytes(b"x")
    with pytest.raises(NotOwnedError):
        disk.delete_object("/f")
    with pytest.raises(NotOwnedError):
        disk.delete_bucket("/d")
    assert (tmp_path / "f").exists()
    assert (tmp_path / "d").exists()


def test_delete_non_empty_bucket(disk):
    disk.create_bucket("/a")
    disk.write_object("/a/x", b"1")
    with pytest.raises(NotEmptyError):
        disk.delete_bucket("/a")


def test_overwrite_does_not_adopt(disk, tmp_path):
    (tmp_path / "f").write_bytes(b"old")
    assert disk.write_object("/f", b"new")
    assert not disk.owns_file(str(tmp_path / "f"))
    with pytest.raises(NotOwnedError):
        disk.delete_object("/f")


def test_traversal_rejected(disk):
    with pytest.raises(TraversalRejectedError):
        disk.read_object("a/../../etc/passwd")
    with pytest.raises(TraversalRejectedError):
        disk.is_bucket("..")


# ── key-value surface ────────────────────────────────────────


def test_setitem_creates_parents(disk, tmp_path):
    disk["a/b/x"] = b"1"
    assert disk["a/b/x"] == b"1"
    assert disk.owns_dir(str(tmp_path / "a"))
    assert disk.owns_dir(str(tmp_path / "a" / "b"))
    assert disk.owns_file(str(tmp_path / "a" / "b" / "x"))
    assert "a/b" in disk
    assert "a/nope" not in disk


def test_setitem_kind_clashes(disk, tmp_path):
    (tmp_path / "d").mkdir()
    with pytest.raises(KeyIsBucketError):
        disk["d"] = b"1"
    with pytest.raises(KeyIsBucketError):
        disk["d/"] = b"1"
    with pytest.raises(InvalidObjectKeyError):
        disk["nope/"] = b"1"


def test_getitem_errors(disk, tmp_path):
    (tmp_path / "d").mkdir()
    with pytest.raises(KeyIsBucketError):
        disk["d"]
    with pytest.raises(NotFoundError):
        disk["nope"]


def test_delitem(disk, tmp_path):
    disk["a/x"] = "1"
    del disk["a/x"]
    del disk["a"]
    assert not (tmp_path / "a").exists()
    with pytest.raises(NotFoundError):
        del disk["a"]


# ── delete_all ───────────────────────────────────────────────


def test_delete_all_owned_tree(disk, tmp_path):
    disk["t/a/x"] = b"1"
    disk["t/y"] = b"2"
    disk.delete_all("t")
    assert not (tmp_path / "t").exists()
    assert disk.created_files == set()


def test_delete_all_stops_at_foreign_file(disk, tmp_path):
    disk["t/a_mine"] = b"1"
    (tmp_path / "t" / "b_foreign").write_bytes(b"2")
    disk["t/c_mine"] = b"3"

    with pytest.raises(NotOwnedError) as exc_info:
        disk.delete_all("t")

    assert exc_info.value.key.endswith("b_foreign")
    assert not (tmp_path / "t" / "a_mine").exists()
    assert (tmp_path / "t" / "b_foreign").exists()
    assert (tmp_path / "t" / "c_mine").exists()


def test_delete_all_include_foreign(disk, tmp_path):
    disk["t/mine"] = b"1"
    (tmp_path / "t" / "sub").mkdir()
    (tmp_path / "t" / "sub" / "foreign").write_bytes(b"2")
    disk.delete_all("t", include_foreign=True)
    assert not (tmp_path / "t").exists()


def test_delete_all_removes_owned_prefix(tmp_path):
    disk = LocalDiskBackend(tmp_path / "new")
    disk["a/x"] = b"1"
    disk.delete_all()
    assert not (tmp_path / "new").exists()


def test_delete_all_keeps_foreign_prefix(disk, tmp_path):
    disk["x"] = b"1"
    with pytest.raises(NotOwnedError):
        disk.delete_all()
    assert not (tmp_path / "x").exists()
    assert tmp_path.exists()


def test_delete_all_missing(disk):
    with pytest.raises(NotFoundError):
        disk.delete_all("nope")


def test_nul_byte_rejected(disk, tmp_path):
    with pytest.raises(InvalidKeyError):
        disk.write_object("/a\x00b", b"1")
    with pytest.raises(InvalidKeyError):
        disk.create_bucket("/a\x00b")
    assert list(tmp_path.iterdir()) == []
