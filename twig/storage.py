"""
Storage backend for twig.

Handles persistence of objects and repository state to disk.
"""

import json
from pathlib import Path
from typing import Dict, List, Type, Union

from .errors import ObjectNotFoundError
from .logging import get_twig_logger
from .objects import Blob, Commit, ObjectKind

log = get_twig_logger("objects")

TwigObject = Union[Blob, Commit]

_OBJECT_TYPES: Dict[ObjectKind, Type] = {
    ObjectKind.BLOB: Blob,
    ObjectKind.COMMIT: Commit,
}


class ObjectStore:
    """
    Content-addressed store for blobs and commits.

    Each object lives in one file named by its full digest, under a
    sub-directory per object kind. Objects are written once and never
    modified.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize the object store.

        Args:
            base_dir: Control directory holding the ``blobs`` and ``commits`` areas
        """
        self.base_dir = Path(base_dir)
        self.dirs: Dict[ObjectKind, Path] = {
            ObjectKind.BLOB: self.base_dir / "blobs",
            ObjectKind.COMMIT: self.base_dir / "commits",
        }

    def ensure_directories(self) -> None:
        for directory in self.dirs.values():
            directory.mkdir(parents=True, exist_ok=True)

    def _path(self, digest: str, kind: ObjectKind) -> Path:
        return self.dirs[kind] / digest

    def put(self, obj: TwigObject) -> str:
        """
        Store an object under its digest.

        Writing an object that is already present is a no-op.

        Args:
            obj: Blob or Commit to store

        Returns:
            Digest of the object
        """
        digest = obj.digest
        path = self._path(digest, obj.kind)
        if path.exists():
            return digest

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(obj.to_bytes())

        log.debug(f"Stored {obj.kind.value} {digest[:8]}", digest=digest)
        return digest

    def get(self, digest: str, kind: ObjectKind = ObjectKind.COMMIT) -> TwigObject:
        """
        Load an object by digest.

        Args:
            digest: Full digest of the object
            kind: Object kind to look up

        Returns:
            The stored object

        Raises:
            ObjectNotFoundError: If no object of that kind has the digest
        """
        path = self._path(digest, kind)
        if not path.is_file():
            raise ObjectNotFoundError(digest, kind.value)

        with open(path, "rb") as f:
            data = f.read()
        return _OBJECT_TYPES[kind].from_bytes(data)

    def get_commit(self, digest: str) -> Commit:
        commit = self.get(digest, ObjectKind.COMMIT)
        assert isinstance(commit, Commit)
        return commit

    def get_blob(self, digest: str) -> Blob:
        blob = self.get(digest, ObjectKind.BLOB)
        assert isinstance(blob, Blob)
        return blob

    def contains(self, digest: str, kind: ObjectKind = ObjectKind.COMMIT) -> bool:
        return self._path(digest, kind).is_file()

    def list_digests(self, kind: ObjectKind = ObjectKind.COMMIT) -> List[str]:
        """
        List all digests of one object kind.

        Returns:
            Sorted list of digests
        """
        directory = self.dirs[kind]
        if not directory.is_dir():
            return []
        return sorted(f.name for f in directory.iterdir() if f.is_file())


class StateStorage:
    """
    File-based storage for the mutable repository state.

    Layout of the control directory:
    - blobs/{digest}
    - commits/{digest}   (JSON)
    - branches           (JSON mapping: branch name -> commit digest)
    - HEAD               (commit digest)
    - active             (active branch name)
    - staged_additions   (JSON mapping: path -> blob digest)
    - staged_removals    (JSON list of paths)
    """

    def __init__(self, base_dir: Path):
        """
        Initialize storage.

        Args:
            base_dir: Control directory
        """
        self.base_dir = Path(base_dir)
        self.branches_file = self.base_dir / "branches"
        self.head_file = self.base_dir / "HEAD"
        self.active_file = self.base_dir / "active"
        self.additions_file = self.base_dir / "staged_additions"
        self.removals_file = self.base_dir / "staged_removals"

    def exists(self) -> bool:
        return self.base_dir.is_dir()

    def create(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=False)

    def _read_text(self, path: Path) -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()

    def _write_text(self, path: Path, text: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)

    def _read_json(self, path: Path):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, data) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def load_branches(self) -> Dict[str, str]:
        return dict(self._read_json(self.branches_file))

    def save_branches(self, branches: Dict[str, str]) -> None:
        self._write_json(self.branches_file, branches)

    def load_head(self) -> str:
        return self._read_text(self.head_file)

    def save_head(self, digest: str) -> None:
        self._write_text(self.head_file, digest)

    def load_active_branch(self) -> str:
        return self._read_text(self.active_file)

    def save_active_branch(self, name: str) -> None:
        self._write_text(self.active_file, name)

    def load_staged_additions(self) -> Dict[str, str]:
        return dict(self._read_json(self.additions_file))

    def save_staged_additions(self, additions: Dict[str, str]) -> None:
        self._write_json(self.additions_file, additions)

    def load_staged_removals(self) -> List[str]:
        return list(self._read_json(self.removals_file))

    def save_staged_removals(self, removals) -> None:
        self._write_json(self.removals_file, sorted(removals))
