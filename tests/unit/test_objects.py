"""
Unit tests for the object model.

Tests Blob and Commit digests, serialization and the root commit.
"""

import hashlib
from datetime import datetime, timedelta, timezone

import pytest

from twig.objects import (
    EPOCH,
    Blob,
    Commit,
    ObjectKind,
    create_commit,
    create_root_commit,
    sha1_hex,
)


class TestBlob:
    """Tests for Blob class."""

    def test_digest_is_sha1_of_content(self) -> None:
        """Test that a blob is named by the SHA-1 of its bytes."""
        blob = Blob(b"hello\n")
        assert blob.digest == hashlib.sha1(b"hello\n").hexdigest()
        assert len(blob.digest) == 40

    def test_equal_content_equal_digest(self) -> None:
        """Test content addressing: same bytes, same digest."""
        assert Blob(b"abc").digest == Blob(b"abc").digest
        assert Blob(b"abc").digest != Blob(b"abd").digest

    def test_bytes_roundtrip(self) -> None:
        blob = Blob(b"\x00\x01binary")
        assert Blob.from_bytes(blob.to_bytes()) == blob
        assert blob.kind == ObjectKind.BLOB

    def test_blob_is_immutable(self) -> None:
        blob = Blob(b"x")
        with pytest.raises(AttributeError):
            blob.content = b"y"  # type: ignore[misc]


class TestCommit:
    """Tests for Commit class."""

    def test_root_commit(self) -> None:
        """Test the fixed root commit."""
        root = create_root_commit()
        assert root.message == "initial commit"
        assert root.timestamp == EPOCH
        assert root.parents == ()
        assert root.tracked == {}
        assert root.first_parent is None
        assert not root.is_merge

    def test_root_commit_digest_is_stable(self) -> None:
        """Test that every repository starts from the same root digest."""
        assert create_root_commit().digest == create_root_commit().digest

    def test_root_timestamp_repr(self) -> None:
        assert create_root_commit().timestamp_repr() == "Thu Jan 01 00:00:00 1970 +0000"

    def test_digest_covers_tracked_mapping(self) -> None:
        """Test that commits differing only in their snapshot differ in digest."""
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        a = Commit("msg", ts, ("p" * 40,), {"a.txt": "1" * 40})
        b = Commit("msg", ts, ("p" * 40,), {"a.txt": "2" * 40})
        assert a.digest != b.digest

    def test_digest_covers_message_and_parents(self) -> None:
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        base = Commit("msg", ts, ("a" * 40,))
        assert base.digest != Commit("other", ts, ("a" * 40,)).digest
        assert base.digest != Commit("msg", ts, ("b" * 40,)).digest

    def test_naive_timestamp_rejected(self) -> None:
        with pytest.raises(ValueError):
            Commit("msg", datetime(2024, 1, 1))

    def test_at_most_two_parents(self) -> None:
        with pytest.raises(ValueError):
            Commit("msg", EPOCH, ("a", "b", "c"))

    def test_merge_commit(self) -> None:
        """Test first parent and merge detection."""
        commit = Commit("Merged b into a.", EPOCH, ("a" * 40, "b" * 40))
        assert commit.is_merge
        assert commit.first_parent == "a" * 40

    def test_serialization_roundtrip(self) -> None:
        """Test commit to/from bytes keeps the digest."""
        tz = timezone(timedelta(hours=-8))
        commit = Commit(
            "add files",
            datetime(2023, 3, 4, 5, 6, 7, tzinfo=tz),
            ("f" * 40,),
            {"b.txt": "2" * 40, "a.txt": "1" * 40},
        )
        restored = Commit.from_bytes(commit.to_bytes())
        assert restored == commit
        assert restored.digest == commit.digest
        assert restored.timestamp_repr() == "Sat Mar 04 05:06:07 2023 -0800"

    def test_blob_digest_lookup(self) -> None:
        commit = Commit("m", EPOCH, (), {"a.txt": "1" * 40})
        assert commit.blob_digest("a.txt") == "1" * 40
        assert commit.blob_digest("missing.txt") is None


class TestCreateCommit:
    """Tests for create_commit."""

    def test_uses_aware_current_time(self) -> None:
        commit = create_commit("msg", ("a" * 40,), {})
        assert commit.timestamp.tzinfo is not None
        assert commit.timestamp > EPOCH

    def test_copies_tracked_mapping(self) -> None:
        """Test that later changes to the caller's dict do not leak in."""
        tracked = {"a.txt": "1" * 40}
        commit = create_commit("msg", ("a" * 40,), tracked)
        tracked["b.txt"] = "2" * 40
        assert "b.txt" not in commit.tracked

    def test_sha1_hex_concatenates(self) -> None:
        assert sha1_hex(b"ab", b"c") == hashlib.sha1(b"abc").hexdigest()
