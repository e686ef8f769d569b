"""
Diff computation for tracked-file mappings.

Compares two path -> blob digest mappings and reports per-path changes,
and builds the status report of the working tree against HEAD.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from enum import Enum

from .state import RepositoryState
from .working_dir import WorkingDirectory


class ChangeType(str, Enum):
    """Type of change in a diff."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


@dataclass
class FileChange:
    """Represents a change to a single path."""

    path: str
    change_type: ChangeType
    old_digest: Optional[str]
    new_digest: Optional[str]


@dataclass
class TreeDiff:
    """Complete diff between two tracked mappings."""

    changes: Dict[str, FileChange] = field(default_factory=dict)

    def has_changes(self) -> bool:
        return any(c.change_type != ChangeType.UNCHANGED for c in self.changes.values())

    def changed_paths(self) -> Set[str]:
        return {
            path
            for path, change in self.changes.items()
            if change.change_type != ChangeType.UNCHANGED
        }

    def count_by_type(self) -> Dict[str, int]:
        """Count changes by type."""
        counts = {
            "added": 0,
            "removed": 0,
            "modified": 0,
        }
        for change in self.changes.values():
            if change.change_type != ChangeType.UNCHANGED:
                counts[change.change_type.value] += 1
        return counts

    def summary(self) -> str:
        """Generate a summary of the diff."""
        if not self.has_changes():
            return "No changes"

        counts = self.count_by_type()
        parts = []
        if counts["added"] > 0:
            parts.append(f"{counts['added']} files added")
        if counts["removed"] > 0:
            parts.append(f"{counts['removed']} files removed")
        if counts["modified"] > 0:
            parts.append(f"{counts['modified']} files modified")

        return ", ".join(parts)


def compute_diff(old: Dict[str, str], new: Dict[str, str]) -> TreeDiff:
    """
    Compute diff between two tracked mappings.

    Args:
        old: Path -> blob digest before
        new: Path -> blob digest after

    Returns:
        TreeDiff with one entry per path present on either side
    """
    changes: Dict[str, FileChange] = {}
    for path in sorted(set(old) | set(new)):
        old_digest = old.get(path)
        new_digest = new.get(path)
        if old_digest is None:
            change_type = ChangeType.ADDED
        elif new_digest is None:
            change_type = ChangeType.REMOVED
        elif old_digest != new_digest:
            change_type = ChangeType.MODIFIED
        else:
            change_type = ChangeType.UNCHANGED
        changes[path] = FileChange(path, change_type, old_digest, new_digest)
    return TreeDiff(changes=changes)


@dataclass
class StatusReport:
    """Snapshot of branches, staging area and working-tree changes."""

    branches: List[str]
    active_branch: str
    staged: List[str]
    removed: List[str]
    modified: List[str]
    deleted: List[str]
    untracked: List[str]

    def format(self) -> str:
        """Format the report in sections, each followed by a blank line."""
        lines = ["=== Branches ==="]
        for name in self.branches:
            lines.append(f"*{name}" if name == self.active_branch else name)
        lines.append("")

        lines.append("=== Staged Files ===")
        lines.extend(self.staged)
        lines.append("")

        lines.append("=== Removed Files ===")
        lines.extend(self.removed)
        lines.append("")

        lines.append("=== Modifications Not Staged For Commit ===")
        unstaged = [f"{p} (modified)" for p in self.modified]
        unstaged += [f"{p} (deleted)" for p in self.deleted]
        lines.extend(sorted(unstaged))
        lines.append("")

        lines.append("=== Untracked Files ===")
        lines.extend(self.untracked)
        lines.append("")
        return "\n".join(lines)


def compute_status(
    state: RepositoryState,
    head_tracked: Dict[str, str],
    working_dir: WorkingDirectory,
) -> StatusReport:
    """
    Compare the working tree with HEAD and the staging area.

    A file is modified-but-unstaged when its working content differs from
    what would be committed (the staged blob if staged, else HEAD's blob),
    and deleted-but-unstaged when it would be committed but is missing.
    """
    files = working_dir.list_files()
    present = set(files)
    expected = state.apply_staging(head_tracked)

    modified: List[str] = []
    deleted: List[str] = []
    for path, blob_digest in sorted(expected.items()):
        if path not in present:
            deleted.append(path)
        elif working_dir.digest(path) != blob_digest:
            modified.append(path)

    untracked = [
        path
        for path in files
        if path not in head_tracked and path not in state.staged_additions
    ]
    # A file staged for removal but recreated is untracked again.
    untracked += [path for path in sorted(state.staged_removals) if path in present]

    return StatusReport(
        branches=sorted(state.branch_tips),
        active_branch=state.active_branch,
        staged=sorted(state.staged_additions),
        removed=sorted(state.staged_removals),
        modified=modified,
        deleted=deleted,
        untracked=sorted(untracked),
    )
