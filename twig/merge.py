"""
Three-way merge of branches.

A merge runs through Validating -> ComputingBase -> Classifying ->
Applying -> Done. Every check runs before the first write; conflicts are
recorded in the tree rather than aborting the merge.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .diff import compute_diff
from .errors import (
    AlreadyUpToDateError,
    BranchNotFoundError,
    SelfMergeError,
    UncommittedChangesError,
)
from .graph import CommitGraph
from .logging import get_twig_logger, performance_monitor
from .objects import Blob
from .state import RepositoryState
from .storage import ObjectStore
from .working_dir import WorkingDirectory

log = get_twig_logger("merge")

CONFLICT_START = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END = b">>>>>>>\n"


class MergeStrategy(str, Enum):
    """How a merge was carried out."""

    FAST_FORWARD = "fast_forward"
    THREE_WAY = "three_way"


class MergeAction(str, Enum):
    """Outcome for one path of a three-way merge."""

    KEEP = "keep"  # result equals the active side, present or absent
    TAKE_OTHER = "take_other"
    REMOVE = "remove"
    CONFLICT = "conflict"


def classify(
    base: Optional[str], active: Optional[str], other: Optional[str]
) -> MergeAction:
    """
    Classify one path by its blob digest in base, active and other.

    ``None`` means the path is absent on that side.
    """
    if active == other:
        return MergeAction.KEEP
    if base == active:
        return MergeAction.REMOVE if other is None else MergeAction.TAKE_OTHER
    if base == other:
        return MergeAction.KEEP
    return MergeAction.CONFLICT


def render_conflict(active: bytes, other: bytes) -> bytes:
    """Content of a conflicted file holding both sides between markers."""
    return CONFLICT_START + active + CONFLICT_SEPARATOR + other + CONFLICT_END


@dataclass(frozen=True)
class PathResolution:
    path: str
    action: MergeAction
    base: Optional[str]
    active: Optional[str]
    other: Optional[str]


@dataclass
class MergePlan:
    """Per-path merge decisions for the paths either side changed."""

    resolutions: Dict[str, PathResolution] = field(default_factory=dict)

    def by_action(self, action: MergeAction) -> Tuple[PathResolution, ...]:
        return tuple(r for r in self.resolutions.values() if r.action == action)

    @property
    def conflicts(self) -> Tuple[str, ...]:
        return tuple(r.path for r in self.by_action(MergeAction.CONFLICT))


def plan_merge(
    base: Dict[str, str], active: Dict[str, str], other: Dict[str, str]
) -> MergePlan:
    """
    Classify every path changed relative to ``base`` on either side.

    Paths neither side touched keep the active version and need no action.
    """
    changed = compute_diff(base, active).changed_paths()
    changed |= compute_diff(base, other).changed_paths()

    plan = MergePlan()
    for path in sorted(changed):
        resolution = PathResolution(
            path=path,
            action=classify(base.get(path), active.get(path), other.get(path)),
            base=base.get(path),
            active=active.get(path),
            other=other.get(path),
        )
        plan.resolutions[path] = resolution
    return plan


@dataclass(frozen=True)
class MergeResult:
    """
    Result of a merge operation.

    Attributes:
        strategy: Fast-forward or three-way
        commit: Digest the active branch now points to
        base: Merge base of the two tips
        conflicts: Paths written with conflict markers (three-way only)
    """

    strategy: MergeStrategy
    commit: str
    base: str
    conflicts: Tuple[str, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class MergeEngine:
    """Merges another branch into the active branch of a repository state."""

    def __init__(
        self,
        objects: ObjectStore,
        graph: CommitGraph,
        working_dir: WorkingDirectory,
    ):
        self.objects = objects
        self.graph = graph
        self.working_dir = working_dir

    @performance_monitor(threshold_ms=2000.0)
    def merge(self, state: RepositoryState, branch: str) -> MergeResult:
        """
        Merge ``branch`` into the active branch, mutating ``state``.

        The caller persists ``state`` afterwards.

        Raises:
            SelfMergeError: If ``branch`` is the active branch
            BranchNotFoundError: If ``branch`` does not exist
            UncommittedChangesError: If the staging area is not empty
            UntrackedFileConflictError: If untracked work would be overwritten
            AlreadyUpToDateError: If ``branch`` is already contained in HEAD
        """
        # Validating
        if branch == state.active_branch:
            raise SelfMergeError()
        if branch not in state.branch_tips:
            raise BranchNotFoundError(branch)
        if state.has_staged_changes:
            raise UncommittedChangesError()

        active_tip = state.head
        other_tip = state.branch_tips[branch]
        active = self.graph.commit(active_tip)
        other = self.graph.commit(other_tip)
        self.working_dir.safety_check(other.tracked, active.tracked)

        # ComputingBase
        if self.graph.is_ancestor(other_tip, active_tip):
            raise AlreadyUpToDateError()
        if self.graph.is_ancestor(active_tip, other_tip):
            self.working_dir.materialize(other.tracked, active.tracked)
            state.advance(other_tip)
            log.bind(branch=state.active_branch, commit=other_tip).info(
                f"Fast-forwarded {state.active_branch} to {other_tip[:8]}"
            )
            return MergeResult(MergeStrategy.FAST_FORWARD, other_tip, active_tip)

        base = self.graph.merge_base(active_tip, other_tip)
        base_tracked = self.graph.commit(base).tracked if base else {}

        # Classifying
        plan = plan_merge(base_tracked, active.tracked, other.tracked)

        # Applying: load every blob first so a missing object aborts before writes
        writes: Dict[str, bytes] = {}
        for resolution in plan.by_action(MergeAction.TAKE_OTHER):
            assert resolution.other is not None
            writes[resolution.path] = self.objects.get_blob(resolution.other).content
        for resolution in plan.by_action(MergeAction.CONFLICT):
            writes[resolution.path] = render_conflict(
                self._content(resolution.active), self._content(resolution.other)
            )

        for resolution in plan.by_action(MergeAction.REMOVE):
            state.stage_removal(resolution.path, is_tracked=True)
            self.working_dir.delete(resolution.path)
        for path, content in writes.items():
            digest = self.objects.put(Blob(content))
            state.stage(path, digest, active.tracked.get(path))
            self.working_dir.write(path, content)

        # Done
        message = f"Merged {branch} into {state.active_branch}."
        digest = state.record_commit(
            self.objects, active.tracked, message, (active_tip, other_tip)
        )

        conflicts = plan.conflicts
        if conflicts:
            log.bind(branch=branch, conflicts=list(conflicts)).warning(
                f"Merge of {branch} recorded {len(conflicts)} conflicts"
            )
        merged = self.graph.commit(digest)
        log.bind(commit=digest, base=base).info(
            f"{message} {compute_diff(active.tracked, merged.tracked).summary()}"
        )
        return MergeResult(MergeStrategy.THREE_WAY, digest, base or "", conflicts)

    def _content(self, digest: Optional[str]) -> bytes:
        if digest is None:
            return b""
        return self.objects.get_blob(digest).content
