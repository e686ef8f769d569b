"""
Unit tests for object and state storage.
"""

import tempfile
from pathlib import Path

import pytest

from twig.errors import ObjectNotFoundError
from twig.objects import Blob, ObjectKind, create_commit, create_root_commit
from twig.storage import ObjectStore, StateStorage


class TestObjectStore:
    """Tests for ObjectStore class."""

    @pytest.fixture
    def store(self):
        """Create an object store in a temporary directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ObjectStore(Path(tmpdir) / ".twig")
            store.ensure_directories()
            yield store

    def test_directories_created(self, store: ObjectStore) -> None:
        assert (store.base_dir / "blobs").is_dir()
        assert (store.base_dir / "commits").is_dir()

    def test_put_and_get_blob(self, store: ObjectStore) -> None:
        """Test storing a blob under its digest."""
        blob = Blob(b"contents")
        digest = store.put(blob)
        assert digest == blob.digest
        assert (store.base_dir / "blobs" / digest).read_bytes() == b"contents"
        assert store.get_blob(digest) == blob

    def test_put_and_get_commit(self, store: ObjectStore) -> None:
        root = create_root_commit()
        digest = store.put(root)
        loaded = store.get_commit(digest)
        assert loaded == root
        assert loaded.digest == digest

    def test_put_is_idempotent(self, store: ObjectStore) -> None:
        """Test that storing the same content twice keeps one object."""
        first = store.put(Blob(b"same"))
        second = store.put(Blob(b"same"))
        assert first == second
        assert store.list_digests(ObjectKind.BLOB) == [first]

    def test_missing_object_raises(self, store: ObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError) as exc_info:
            store.get_commit("0" * 40)
        assert str(exc_info.value) == "No commit with that id exists."

    def test_kinds_are_separate(self, store: ObjectStore) -> None:
        """Test that a blob digest is not found as a commit."""
        digest = store.put(Blob(b"data"))
        assert store.contains(digest, ObjectKind.BLOB)
        assert not store.contains(digest, ObjectKind.COMMIT)
        with pytest.raises(ObjectNotFoundError):
            store.get_commit(digest)

    def test_list_digests_sorted(self, store: ObjectStore) -> None:
        root = store.put(create_root_commit())
        child = store.put(create_commit("next", (root,), {}))
        assert store.list_digests(ObjectKind.COMMIT) == sorted([root, child])

    def test_list_digests_without_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ObjectStore(Path(tmpdir) / "missing")
            assert store.list_digests() == []


class TestStateStorage:
    """Tests for StateStorage class."""

    @pytest.fixture
    def storage(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = StateStorage(Path(tmpdir) / ".twig")
            storage.create()
            yield storage

    def test_create_refuses_existing(self, storage: StateStorage) -> None:
        assert storage.exists()
        with pytest.raises(FileExistsError):
            storage.create()

    def test_branches_roundtrip(self, storage: StateStorage) -> None:
        branches = {"master": "a" * 40, "feature": "b" * 40}
        storage.save_branches(branches)
        assert storage.load_branches() == branches

    def test_head_and_active_branch(self, storage: StateStorage) -> None:
        storage.save_head("c" * 40)
        storage.save_active_branch("master")
        assert storage.load_head() == "c" * 40
        assert storage.load_active_branch() == "master"

    def test_staging_roundtrip(self, storage: StateStorage) -> None:
        """Test staged additions and removals survive a save/load."""
        storage.save_staged_additions({"dir/a.txt": "1" * 40})
        storage.save_staged_removals({"z.txt", "b.txt"})
        assert storage.load_staged_additions() == {"dir/a.txt": "1" * 40}
        assert storage.load_staged_removals() == ["b.txt", "z.txt"]
