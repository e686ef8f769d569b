"""
Repository operations for twig.

One method per user command. Every method loads the repository state
fresh, validates, then mutates and persists; failures raise a TwigError
before the first write.
"""

from pathlib import Path
from typing import List, Optional

from .config import Config, config as default_config
from .diff import StatusReport, compute_diff, compute_status
from .errors import (
    AlreadyOnBranchError,
    BranchNotFoundError,
    EmptyMessageError,
    NoChangesError,
    NoMatchingCommitError,
    NotARepositoryError,
    RepositoryExistsError,
)
from .graph import CommitGraph
from .logging import get_twig_logger, performance_monitor, track_operation
from .merge import MergeEngine, MergeResult
from .objects import Blob, Commit, create_root_commit
from .state import RepositoryState
from .storage import ObjectStore, StateStorage
from .working_dir import WorkingDirectory

log = get_twig_logger("repository")


def format_log_entry(commit: Commit, abbrev_length: int = 7) -> str:
    """
    Format one commit for ``log`` and ``global-log`` output.

    Example:
        ===
        commit 3e8bf1d794ca2e9ef8a4007275acf3751c7170ff
        Date: Thu Jan 01 00:00:00 1970 +0000
        initial commit
    """
    lines = ["===", f"commit {commit.digest}"]
    if commit.is_merge:
        lines.append(
            "Merge: " + " ".join(p[:abbrev_length] for p in commit.parents)
        )
    lines.append(f"Date: {commit.timestamp_repr()}")
    lines.append(commit.message)
    lines.append("")
    return "\n".join(lines)


class Repository:
    """
    A twig repository rooted at a working directory.

    Provides operations for:
    - Staging and committing files
    - Branching, checkout and reset
    - Merging branches
    - Inspecting history and status
    """

    def __init__(self, root: Path = Path("."), config: Optional[Config] = None):
        """
        Initialize a repository handle. Nothing is read until an operation runs.

        Args:
            root: Working tree root
            config: Configuration (default: the global configuration)
        """
        self.root = Path(root)
        self.config = config or default_config
        repo_config = self.config.repository

        self.control_dir = repo_config.control_path(self.root)
        self.objects = ObjectStore(self.control_dir)
        self.storage = StateStorage(self.control_dir)
        self.working_dir = WorkingDirectory(
            self.root,
            self.objects,
            control_dir=repo_config.control_dir,
            ignore_patterns=repo_config.ignore_patterns,
        )

    @property
    def abbrev_length(self) -> int:
        return self.config.repository.abbrev_length

    def is_initialized(self) -> bool:
        return self.storage.exists()

    def _load_state(self) -> RepositoryState:
        if not self.storage.exists():
            raise NotARepositoryError()
        return RepositoryState.load(self.storage)

    def _save_state(self, state: RepositoryState) -> None:
        state.save(self.storage)

    @track_operation("init")
    def init(self) -> str:
        """
        Create the control directory, the root commit and the default branch.

        Returns:
            Digest of the root commit

        Raises:
            RepositoryExistsError: If a repository already exists here
        """
        if self.storage.exists():
            raise RepositoryExistsError()

        self.storage.create()
        self.objects.ensure_directories()
        root_digest = self.objects.put(
            create_root_commit(self.config.repository.initial_message)
        )
        state = RepositoryState.initial(self.config.repository.default_branch, root_digest)
        self._save_state(state)

        log.info(f"Initialized twig repository in {self.control_dir}")
        return root_digest

    @track_operation("add")
    def add(self, path: str) -> bool:
        """
        Stage the current content of a file.

        Staging content identical to HEAD's version un-stages the file.

        Returns:
            True if the file is now staged for addition

        Raises:
            FileNotFoundInTreeError: If the path is not a regular file
        """
        state = self._load_state()
        graph = CommitGraph(self.objects)
        repo_path = self.working_dir.normalize(path)
        blob = Blob(self.working_dir.read(repo_path))

        tracked_digest = graph.commit(state.head).blob_digest(repo_path)
        if blob.digest != tracked_digest:
            self.objects.put(blob)
        staged = state.stage(repo_path, blob.digest, tracked_digest)
        self._save_state(state)
        return staged

    @track_operation("commit")
    def commit(self, message: str) -> str:
        """
        Record the staging area as a new commit on the active branch.

        Returns:
            Digest of the new commit

        Raises:
            EmptyMessageError: If the message is blank
            NoChangesError: If nothing is staged
        """
        state = self._load_state()
        if not message.strip():
            raise EmptyMessageError()
        if not state.has_staged_changes:
            raise NoChangesError()

        head = CommitGraph(self.objects).commit(state.head)
        digest = state.record_commit(self.objects, head.tracked, message, (state.head,))
        self._save_state(state)

        log.bind(commit=digest, branch=state.active_branch).info(
            f"Committed {digest[:8]}: {message}"
        )
        return digest

    @track_operation("rm")
    def rm(self, path: str) -> None:
        """
        Unstage a file and, if HEAD tracks it, stage its removal and delete it.

        Raises:
            NothingToRemoveError: If the file is neither staged nor tracked
        """
        state = self._load_state()
        repo_path = self.working_dir.normalize(path)
        is_tracked = repo_path in CommitGraph(self.objects).commit(state.head).tracked

        state.stage_removal(repo_path, is_tracked)
        if is_tracked:
            self.working_dir.delete(repo_path)
        self._save_state(state)

    def log(self, max_count: Optional[int] = None) -> List[Commit]:
        """
        Get first-parent history from HEAD, newest first.

        Args:
            max_count: Maximum number of commits to return
        """
        state = self._load_state()
        commits: List[Commit] = []
        for commit in CommitGraph(self.objects).first_parent_history(state.head):
            if max_count is not None and len(commits) >= max_count:
                break
            commits.append(commit)
        return commits

    def global_log(self) -> List[Commit]:
        """Every commit ever made, newest first."""
        self._load_state()
        graph = CommitGraph(self.objects)
        commits = [graph.commit(d) for d in graph.all_digests()]
        commits.sort(key=lambda c: c.digest)
        commits.sort(key=lambda c: c.timestamp, reverse=True)
        return commits

    def find(self, message: str) -> List[str]:
        """
        Digests of all commits whose message equals ``message``.

        Raises:
            NoMatchingCommitError: If there are none
        """
        self._load_state()
        graph = CommitGraph(self.objects)
        matches = [d for d in graph.all_digests() if graph.commit(d).message == message]
        if not matches:
            raise NoMatchingCommitError(message)
        return matches

    def status(self) -> StatusReport:
        state = self._load_state()
        head = CommitGraph(self.objects).commit(state.head)
        return compute_status(state, head.tracked, self.working_dir)

    @track_operation("branch")
    def branch(self, name: str) -> None:
        """Create a branch pointing at HEAD without switching to it."""
        state = self._load_state()
        state.add_branch(name)
        self._save_state(state)

    @track_operation("rm_branch")
    def rm_branch(self, name: str) -> None:
        """Delete a branch pointer; its commits are left untouched."""
        state = self._load_state()
        state.remove_branch(name)
        self._save_state(state)

    @track_operation("checkout_branch")
    @performance_monitor(threshold_ms=2000.0)
    def checkout_branch(self, name: str) -> None:
        """
        Switch to another branch, replacing the working tree with its tip.

        Raises:
            BranchNotFoundError: If the branch does not exist
            AlreadyOnBranchError: If it is the active branch
            UntrackedFileConflictError: If untracked work would be overwritten
        """
        state = self._load_state()
        if name not in state.branch_tips:
            raise BranchNotFoundError(name, "No such branch exists.")
        if name == state.active_branch:
            raise AlreadyOnBranchError(name)

        self._move_to(state, state.branch_tips[name])
        state.switch_branch(name)
        self._save_state(state)
        log.bind(branch=name).info(f"Switched to branch {name}")

    @track_operation("checkout_file")
    def checkout_file(self, path: str, commit_id: Optional[str] = None) -> None:
        """
        Restore one file from HEAD or from the given commit.

        The file is not staged.

        Raises:
            ObjectNotFoundError: If ``commit_id`` matches no commit
            AmbiguousIdentifierError: If ``commit_id`` matches several commits
            FileNotInCommitError: If the commit does not track the file
        """
        state = self._load_state()
        graph = CommitGraph(self.objects)
        digest = graph.resolve(commit_id) if commit_id is not None else state.head
        repo_path = self.working_dir.normalize(path)
        self.working_dir.restore_one(graph.commit(digest), digest, repo_path)

    @track_operation("reset")
    @performance_monitor(threshold_ms=2000.0)
    def reset(self, commit_id: str) -> str:
        """
        Move the active branch to a commit and check out its files.

        Returns:
            Full digest of the commit

        Raises:
            ObjectNotFoundError: If ``commit_id`` matches no commit
            AmbiguousIdentifierError: If ``commit_id`` matches several commits
            UntrackedFileConflictError: If untracked work would be overwritten
        """
        state = self._load_state()
        digest = CommitGraph(self.objects).resolve(commit_id)
        self._move_to(state, digest)
        state.advance(digest)
        self._save_state(state)
        log.bind(commit=digest).info(f"Reset {state.active_branch} to {digest[:8]}")
        return digest

    @track_operation("merge")
    def merge(self, branch: str) -> MergeResult:
        """
        Merge ``branch`` into the active branch.

        Conflicts do not abort the merge: conflicted files are written
        with both versions and committed, and reported in the result.
        """
        state = self._load_state()
        graph = CommitGraph(self.objects)
        result = MergeEngine(self.objects, graph, self.working_dir).merge(state, branch)
        self._save_state(state)
        return result

    def _move_to(self, state: RepositoryState, target_digest: str) -> None:
        """Check the safety of, then materialize, a target commit; clears staging."""
        graph = CommitGraph(self.objects)
        current = graph.commit(state.head)
        target = graph.commit(target_digest)

        self.working_dir.safety_check(target.tracked, current.tracked)
        self.working_dir.materialize(target.tracked, current.tracked)
        state.clear_staging()
        log.bind(commit=target_digest).debug(
            f"Moved to {target_digest[:8]}: "
            f"{compute_diff(current.tracked, target.tracked).summary()}"
        )
