"""
Mutable repository state.

Branch table, active branch, HEAD and the staging area. The state is
loaded fresh at the start of every repository operation and saved in
full at the end; nothing is cached across operations.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from .errors import (
    BranchExistsError,
    BranchNotFoundError,
    CannotRemoveActiveBranchError,
    NothingToRemoveError,
)
from .logging import get_twig_logger
from .objects import create_commit
from .storage import ObjectStore, StateStorage

log = get_twig_logger("state")


@dataclass
class RepositoryState:
    """
    The sole mutable entity of a repository.

    Attributes:
        branch_tips: Branch name -> commit digest
        active_branch: Name of the checked-out branch, a key of branch_tips
        head: Mirror of branch_tips[active_branch]
        staged_additions: Path -> blob digest pending for the next commit
        staged_removals: Paths pending removal; disjoint from staged_additions
    """

    branch_tips: Dict[str, str]
    active_branch: str
    head: str
    staged_additions: Dict[str, str] = field(default_factory=dict)
    staged_removals: Set[str] = field(default_factory=set)

    @classmethod
    def initial(cls, branch: str, root_digest: str) -> "RepositoryState":
        return cls(branch_tips={branch: root_digest}, active_branch=branch, head=root_digest)

    @classmethod
    def load(cls, storage: StateStorage) -> "RepositoryState":
        """Read every state file from the control directory."""
        return cls(
            branch_tips=storage.load_branches(),
            active_branch=storage.load_active_branch(),
            head=storage.load_head(),
            staged_additions=storage.load_staged_additions(),
            staged_removals=set(storage.load_staged_removals()),
        )

    def save(self, storage: StateStorage) -> None:
        """Write every state file to the control directory."""
        storage.save_branches(self.branch_tips)
        storage.save_head(self.head)
        storage.save_active_branch(self.active_branch)
        storage.save_staged_additions(self.staged_additions)
        storage.save_staged_removals(self.staged_removals)

    @property
    def has_staged_changes(self) -> bool:
        return bool(self.staged_additions or self.staged_removals)

    def stage(self, path: str, digest: str, tracked_digest: Optional[str]) -> bool:
        """
        Stage ``path`` with the blob ``digest``.

        If the content matches what the active tip tracks, the path is
        un-staged entirely instead.

        Args:
            path: Repository path
            digest: Digest of the file's current content
            tracked_digest: Digest tracked by the active tip, or None

        Returns:
            True if the path is now staged for addition
        """
        self.staged_removals.discard(path)
        if digest == tracked_digest:
            self.staged_additions.pop(path, None)
            return False
        self.staged_additions[path] = digest
        return True

    def stage_removal(self, path: str, is_tracked: bool) -> None:
        """
        Unstage ``path`` and, if the active tip tracks it, stage its removal.

        Raises:
            NothingToRemoveError: If the path is neither staged nor tracked
        """
        if path not in self.staged_additions and not is_tracked:
            raise NothingToRemoveError(path)
        self.staged_additions.pop(path, None)
        if is_tracked:
            self.staged_removals.add(path)

    def apply_staging(self, tracked: Dict[str, str]) -> Dict[str, str]:
        """Overlay the staging area onto a tracked mapping, returning a new one."""
        result = dict(tracked)
        result.update(self.staged_additions)
        for path in self.staged_removals:
            result.pop(path, None)
        return result

    def clear_staging(self) -> None:
        self.staged_additions.clear()
        self.staged_removals.clear()

    def record_commit(
        self,
        objects: ObjectStore,
        parent_tracked: Dict[str, str],
        message: str,
        parents: Tuple[str, ...],
    ) -> str:
        """
        Commit the staging area on top of ``parent_tracked``.

        Stores the new commit, advances the active branch and HEAD to it
        and clears the staging area.

        Returns:
            Digest of the new commit
        """
        commit = create_commit(message, parents, self.apply_staging(parent_tracked))
        digest = objects.put(commit)
        self.advance(digest)
        self.clear_staging()
        return digest

    def advance(self, digest: str) -> None:
        """Point the active branch and HEAD at ``digest``."""
        self.branch_tips[self.active_branch] = digest
        self.head = digest

    def switch_branch(self, name: str) -> None:
        if name not in self.branch_tips:
            raise BranchNotFoundError(name)
        self.active_branch = name
        self.head = self.branch_tips[name]

    def add_branch(self, name: str) -> None:
        if name in self.branch_tips:
            raise BranchExistsError(name)
        self.branch_tips[name] = self.head
        log.bind(branch=name).debug(f"Created branch {name} at {self.head[:8]}")

    def remove_branch(self, name: str) -> None:
        if name == self.active_branch:
            raise CannotRemoveActiveBranchError(name)
        if name not in self.branch_tips:
            raise BranchNotFoundError(name)
        del self.branch_tips[name]
        log.bind(branch=name).debug(f"Removed branch {name}")
