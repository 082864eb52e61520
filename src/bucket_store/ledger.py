"""OwnershipLedger — which buckets and objects this store instance created."""

from __future__ import annotations

from bucket_store.paths import split_name

ROOT = ""


class OwnershipLedger:
    """Per-instance provenance bookkeeping.

    ``members`` maps a bucket name (relative to the root, ``""`` for the root)
    to the short names of the buckets and objects created in it through this
    instance.  ``buckets`` holds the names of buckets this instance created.

    Names are only ever added after a successful create and removed after a
    successful delete.  Pre-existing content is never adopted by discovery.
    """

    def __init__(self) -> None:
        self.members: dict[str, set[str]] = {ROOT: set()}
        self.buckets: set[str] = set()

    def record_bucket(self, name: str) -> None:
        self.buckets.add(name)
        self.members[name] = set()
        if name != ROOT:
            parent, short = split_name(name)
            if parent in self.members:
                self.members[parent].add(short)

    def forget_bucket(self, name: str) -> None:
        self.buckets.discard(name)
        self.members.pop(name, None)
        if name != ROOT:
            parent, short = split_name(name)
            if parent in self.members:
                self.members[parent].discard(short)

    def record_object(self, name: str) -> None:
        parent, short = split_name(name)
        self.members.setdefault(parent, set()).add(short)

    def forget_object(self, name: str) -> None:
        parent, short = split_name(name)
        if parent in self.members:
            self.members[parent].discard(short)

    def owns_bucket(self, name: str) -> bool:
        return name in self.buckets

    def owns_object(self, name: str) -> bool:
        if name in self.buckets:
            return False
        parent, short = split_name(name)
        return short in self.members.get(parent, ())

    def clear(self) -> None:
        self.members = {ROOT: set()}
        self.buckets = set()
