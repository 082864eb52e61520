"""
bucket_store — Hello World

One root bucket, everything confined inside it. Writes are gated by a
permission mode (readonly / limited / unlimited) or by a rule set.
Mutations return a StoreResult instead of raising.
"""

import logging
import re
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

from bucket_store import (
    BucketStore,
    LocalDiskBackend,
    Permission,
    PermissionResolver,
    ResourceKind,
)


def report(label: str, result) -> None:
    if result:
        print(f"  {label}: ok")
    else:
        print(f"  {label}: refused ({result.error_type}) {result.reason}")


def main():
    logging.basicConfig(level=logging.INFO, format="  [log] %(name)s: %(message)s")
    workdir = Path(tempfile.mkdtemp())
    root = str(workdir / "store")

    # ──────────────────────────────────────
    #  1. Open a store (creates the root)
    # ──────────────────────────────────────
    print("=== Round trip ===\n")

    store = BucketStore(LocalDiskBackend("/"), root, mode="limited")

    report("create_bucket a", store.create_bucket("a"))
    report("set a/x", store.set("a/x", "hello"))
    print(f"  get a/x -> {store.get('a/x')!r}")
    print(f"  contents of a: {store.list_contents('a')}")

    # ──────────────────────────────────────
    #  2. Nothing escapes the root
    # ──────────────────────────────────────
    print("\n=== Confinement ===\n")

    report("set ../escape", store.set("../escape", "x"))
    report("set /etc/passwd", store.set("/etc/passwd", "x"))

    # ──────────────────────────────────────
    #  3. Limited mode only touches its own content
    # ──────────────────────────────────────
    print("\n=== Foreign content ===\n")

    (workdir / "store" / "notes.txt").write_text("written by someone else")
    print(f"  is_object notes.txt: {store.is_object('notes.txt')}")
    print(f"  has_object notes.txt: {store.has_object('notes.txt')}")
    report("set notes.txt", store.set("notes.txt", "mine now?"))

    # ──────────────────────────────────────
    #  4. Rule-based permissions
    # ──────────────────────────────────────
    print("\n=== Rules ===\n")

    rules = PermissionResolver()
    rules.set_permission(ResourceKind.BUCKET, Permission.full())
    rules.set_permission(ResourceKind.OBJECT, Permission.full())
    rules.set_permission(re.compile(r"\.lock$"), Permission(create=True, read=True))
    ruled = BucketStore.with_rules(LocalDiskBackend("/"), root, rules)

    report("set app.lock", ruled.set("app.lock", "1"))
    report("delete app.lock", ruled.delete("app.lock"))
    print(f"  conflict on app.lock: {ruled.permissions_conflict('app.lock')}")

    ruled.set_permission("a/x", Permission.read_only(datetime.now(UTC) + timedelta(hours=1)))
    report("set a/x", ruled.set("a/x", "changed"))

    print("\n  Rules JSON:", rules.export())

    # ──────────────────────────────────────
    #  5. Tear down what we created
    # ──────────────────────────────────────
    print("\n=== Teardown ===\n")

    report("delete a/x", store.delete("a/x"))
    report("delete_bucket a", store.delete_bucket("a"))
    report("destroy", store.destroy())


if __name__ == "__main__":
    main()
