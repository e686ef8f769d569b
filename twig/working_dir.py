"""
Working-directory synchronization.

Turns a commit's tracked mapping into file writes and deletes in the
working tree, and refuses up front when that would clobber untracked
work.
"""

from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import (
    FileNotFoundInTreeError,
    FileNotInCommitError,
    UntrackedFileConflictError,
)
from .logging import get_twig_logger
from .objects import Blob, Commit
from .storage import ObjectStore

log = get_twig_logger("working_dir")


class WorkingDirectory:
    """
    The user's working tree, as seen by the repository.

    Repository paths are POSIX-style and relative to ``root``. The
    control directory and entries matching ``ignore_patterns`` are
    invisible to every method here.
    """

    def __init__(
        self,
        root: Path,
        objects: ObjectStore,
        control_dir: str = ".twig",
        ignore_patterns: Sequence[str] = (".*",),
    ):
        self.root = Path(root)
        self.objects = objects
        self.control_dir = control_dir
        self.ignore_patterns = tuple(ignore_patterns)

    def _ignored(self, name: str) -> bool:
        if name == self.control_dir:
            return True
        return any(fnmatch(name, pattern) for pattern in self.ignore_patterns)

    def normalize(self, path: str) -> str:
        """
        Convert a user-supplied path to a repository path.

        Raises:
            FileNotFoundInTreeError: If the path lies outside the working
                tree or inside an ignored location
        """
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root.resolve())
            except ValueError:
                raise FileNotFoundInTreeError(path)

        parts = PurePosixPath(candidate.as_posix()).parts
        if not parts or ".." in parts:
            raise FileNotFoundInTreeError(path)
        parts = tuple(p for p in parts if p != ".")
        if not parts or any(self._ignored(p) for p in parts):
            raise FileNotFoundInTreeError(path)
        return "/".join(parts)

    def _abs(self, path: str) -> Path:
        return self.root.joinpath(*PurePosixPath(path).parts)

    def exists(self, path: str) -> bool:
        return self._abs(path).is_file()

    def read(self, path: str) -> bytes:
        """
        Read a working file.

        Raises:
            FileNotFoundInTreeError: If the path is not a regular file
        """
        target = self._abs(path)
        if not target.is_file():
            raise FileNotFoundInTreeError(path)
        return target.read_bytes()

    def digest(self, path: str) -> Optional[str]:
        """Blob digest of the working file, or None if it does not exist."""
        if not self.exists(path):
            return None
        return Blob(self.read(path)).digest

    def write(self, path: str, content: bytes) -> None:
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def delete(self, path: str) -> None:
        """Delete a working file and any directories it leaves empty."""
        target = self._abs(path)
        if not target.is_file():
            return
        target.unlink()
        parent = target.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def list_files(self) -> List[str]:
        """All visible regular files in the working tree, sorted."""
        found: List[str] = []
        self._walk(self.root, (), found)
        return sorted(found)

    def _walk(self, directory: Path, prefix: tuple, found: List[str]) -> None:
        for entry in directory.iterdir():
            if self._ignored(entry.name):
                continue
            if entry.is_dir():
                self._walk(entry, prefix + (entry.name,), found)
            elif entry.is_file():
                found.append("/".join(prefix + (entry.name,)))

    def untracked_conflicts(
        self,
        target_tracked: Dict[str, str],
        current_tracked: Dict[str, str],
    ) -> List[str]:
        """
        Untracked working files that ``target_tracked`` would overwrite.

        A file counts when the current commit does not track it and the
        target tracks the same path with different content. Staged but
        never-committed files are untracked here.
        """
        conflicts = []
        for path, blob_digest in target_tracked.items():
            if path in current_tracked or not self.exists(path):
                continue
            if self.digest(path) != blob_digest:
                conflicts.append(path)
        return sorted(conflicts)

    def safety_check(
        self,
        target_tracked: Dict[str, str],
        current_tracked: Dict[str, str],
    ) -> None:
        """
        Refuse a transition that would overwrite untracked work.

        Performs no writes.

        Raises:
            UntrackedFileConflictError: Listing every offending path
        """
        conflicts = self.untracked_conflicts(target_tracked, current_tracked)
        if conflicts:
            log.bind(paths=conflicts).warning(
                f"Untracked files in the way: {', '.join(conflicts)}"
            )
            raise UntrackedFileConflictError(conflicts)

    def materialize(self, target_tracked: Dict[str, str], managed: Iterable[str]) -> None:
        """
        Make the working tree match ``target_tracked``.

        Every managed path absent from the target is deleted, then every
        target path is written with its blob's content. Blobs are loaded
        before the first write so a missing object aborts cleanly.

        Args:
            target_tracked: Path -> blob digest to materialize
            managed: Paths tracked by the current commit
        """
        contents = {
            path: self.objects.get_blob(blob_digest).content
            for path, blob_digest in target_tracked.items()
        }

        removed = sorted(set(managed) - set(target_tracked))
        for path in removed:
            self.delete(path)
        for path, content in sorted(contents.items()):
            self.write(path, content)

        log.debug(
            f"Materialized {len(contents)} files, removed {len(removed)}",
            written=len(contents),
            removed=len(removed),
        )

    def restore_one(self, commit: Commit, commit_digest: str, path: str) -> None:
        """
        Write one file's content from ``commit`` into the working tree.

        Raises:
            FileNotInCommitError: If the commit does not track ``path``
        """
        blob_digest = commit.blob_digest(path)
        if blob_digest is None:
            raise FileNotInCommitError(path, commit_digest)
        self.write(path, self.objects.get_blob(blob_digest).content)
        log.bind(path=path).debug(f"Restored {path} from {commit_digest[:8]}")
