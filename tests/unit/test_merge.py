"""
Unit tests for three-way merge.

Tests per-path classification, conflict rendering and merges run
through a real repository.
"""

import tempfile
from pathlib import Path

import pytest

from twig.errors import (
    AlreadyUpToDateError,
    BranchNotFoundError,
    SelfMergeError,
    UncommittedChangesError,
    UntrackedFileConflictError,
)
from twig.graph import CommitGraph
from twig.merge import (
    MergeAction,
    MergeStrategy,
    classify,
    plan_merge,
    render_conflict,
)
from twig.repository import Repository

B, X, Y = "b" * 40, "x" * 40, "y" * 40


class TestClassify:
    """Tests for the per-path decision table."""

    def test_both_sides_agree(self) -> None:
        assert classify(B, X, X) == MergeAction.KEEP
        assert classify(B, None, None) == MergeAction.KEEP
        assert classify(None, X, X) == MergeAction.KEEP

    def test_only_other_changed(self) -> None:
        assert classify(B, B, X) == MergeAction.TAKE_OTHER
        assert classify(None, None, X) == MergeAction.TAKE_OTHER

    def test_only_other_removed(self) -> None:
        assert classify(B, B, None) == MergeAction.REMOVE

    def test_only_active_changed(self) -> None:
        assert classify(B, X, B) == MergeAction.KEEP
        assert classify(B, None, B) == MergeAction.KEEP
        assert classify(None, X, None) == MergeAction.KEEP

    def test_conflicts(self) -> None:
        """Test that divergent changes conflict, including modify/delete."""
        assert classify(B, X, Y) == MergeAction.CONFLICT
        assert classify(B, X, None) == MergeAction.CONFLICT
        assert classify(B, None, Y) == MergeAction.CONFLICT
        assert classify(None, X, Y) == MergeAction.CONFLICT

    def test_render_conflict(self) -> None:
        assert render_conflict(b"mine\n", b"theirs\n") == (
            b"<<<<<<< HEAD\nmine\n=======\ntheirs\n>>>>>>>\n"
        )

    def test_render_conflict_missing_side(self) -> None:
        assert render_conflict(b"mine\n", b"") == b"<<<<<<< HEAD\nmine\n=======\n>>>>>>>\n"

    def test_plan_only_covers_changed_paths(self) -> None:
        base = {"same": B, "edit": B, "drop": B}
        active = {"same": B, "edit": X, "drop": B}
        other = {"same": B, "edit": B, "new": Y}
        plan = plan_merge(base, active, other)

        assert set(plan.resolutions) == {"edit", "drop", "new"}
        assert plan.resolutions["edit"].action == MergeAction.KEEP
        assert plan.resolutions["drop"].action == MergeAction.REMOVE
        assert plan.resolutions["new"].action == MergeAction.TAKE_OTHER
        assert plan.conflicts == ()


class TestMergeEngine:
    """Merges run through Repository."""

    @pytest.fixture
    def repo(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            repo = Repository(Path(tmpdir))
            repo.init()
            yield repo

    def write(self, repo: Repository, path: str, content: str) -> None:
        target = repo.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def read(self, repo: Repository, path: str) -> str:
        return (repo.root / path).read_text()

    def commit_file(self, repo: Repository, path: str, content: str, message: str) -> str:
        self.write(repo, path, content)
        repo.add(path)
        return repo.commit(message)

    def test_self_merge(self, repo: Repository) -> None:
        with pytest.raises(SelfMergeError):
            repo.merge("master")

    def test_missing_branch(self, repo: Repository) -> None:
        with pytest.raises(BranchNotFoundError):
            repo.merge("nope")

    def test_uncommitted_changes(self, repo: Repository) -> None:
        repo.branch("other")
        self.write(repo, "a.txt", "a")
        repo.add("a.txt")
        with pytest.raises(UncommittedChangesError):
            repo.merge("other")

    def test_already_up_to_date(self, repo: Repository) -> None:
        """Test merging an ancestor branch changes nothing."""
        repo.branch("old")
        head = self.commit_file(repo, "a.txt", "a", "add a")
        with pytest.raises(AlreadyUpToDateError):
            repo.merge("old")
        assert repo.log()[0].digest == head

    def test_fast_forward(self, repo: Repository) -> None:
        """Test that merging a descendant moves the branch without a new commit."""
        repo.branch("feature")
        repo.checkout_branch("feature")
        feature_tip = self.commit_file(repo, "a.txt", "a", "add a")
        repo.checkout_branch("master")
        assert not (repo.root / "a.txt").exists()
        master_tip = repo.log()[0].digest
        commits_before = len(repo.global_log())

        result = repo.merge("feature")

        assert result.strategy == MergeStrategy.FAST_FORWARD
        assert result.commit == feature_tip
        assert result.base == master_tip
        assert repo.log()[0].digest == feature_tip
        assert len(repo.global_log()) == commits_before
        assert self.read(repo, "a.txt") == "a"

    def test_clean_three_way_merge(self, repo: Repository) -> None:
        """Test non-overlapping changes combine into a merge commit."""
        self.commit_file(repo, "shared.txt", "base", "base")
        self.commit_file(repo, "drop.txt", "drop", "add drop")
        repo.branch("feature")

        self.commit_file(repo, "main.txt", "main", "main work")
        main_tip = repo.log()[0].digest

        repo.checkout_branch("feature")
        self.commit_file(repo, "feature.txt", "feature", "feature work")
        repo.rm("drop.txt")
        feature_tip = repo.commit("drop file")

        repo.checkout_branch("master")
        result = repo.merge("feature")

        assert result.strategy == MergeStrategy.THREE_WAY
        assert not result.has_conflicts
        merge_commit = CommitGraph(repo.objects).commit(result.commit)
        assert merge_commit.parents == (main_tip, feature_tip)
        assert merge_commit.message == "Merged feature into master."
        assert set(merge_commit.tracked) == {"shared.txt", "main.txt", "feature.txt"}
        assert self.read(repo, "feature.txt") == "feature"
        assert not (repo.root / "drop.txt").exists()
        assert not repo.status().staged

    def test_conflicting_merge(self, repo: Repository) -> None:
        """Test that divergent edits produce a conflict file and a merge commit."""
        self.commit_file(repo, "f.txt", "base\n", "base")
        repo.branch("b")
        self.commit_file(repo, "f.txt", "A\n", "change on master")
        main_tip = repo.log()[0].digest
        repo.checkout_branch("b")
        other_tip = self.commit_file(repo, "f.txt", "B\n", "change on b")
        repo.checkout_branch("master")

        result = repo.merge("b")

        assert result.conflicts == ("f.txt",)
        assert self.read(repo, "f.txt") == "<<<<<<< HEAD\nA\n=======\nB\n>>>>>>>\n"
        merge_commit = CommitGraph(repo.objects).commit(result.commit)
        assert merge_commit.parents == (main_tip, other_tip)

    def test_modify_delete_conflict(self, repo: Repository) -> None:
        self.commit_file(repo, "f.txt", "base\n", "base")
        repo.branch("b")
        repo.rm("f.txt")
        repo.commit("delete on master")
        repo.checkout_branch("b")
        self.commit_file(repo, "f.txt", "B\n", "edit on b")
        repo.checkout_branch("master")

        result = repo.merge("b")

        assert result.has_conflicts
        assert self.read(repo, "f.txt") == "<<<<<<< HEAD\n=======\nB\n>>>>>>>\n"

    def test_untracked_file_blocks_merge(self, repo: Repository) -> None:
        """Test the safety check runs before anything is written."""
        self.commit_file(repo, "base.txt", "base", "base")
        repo.branch("b")
        self.commit_file(repo, "main.txt", "main", "main work")
        repo.checkout_branch("b")
        self.commit_file(repo, "new.txt", "theirs", "add new")
        repo.checkout_branch("master")
        head = repo.log()[0].digest
        self.write(repo, "new.txt", "mine")

        with pytest.raises(UntrackedFileConflictError):
            repo.merge("b")
        assert self.read(repo, "new.txt") == "mine"
        assert repo.log()[0].digest == head
