"""
Commit graph traversal.

Commits form a DAG through their parent digests. This module resolves
abbreviated identifiers, walks ancestry and finds merge bases.
"""

from collections import deque
from typing import Deque, Dict, Iterator, List, Optional, Set, Tuple

from .errors import AmbiguousIdentifierError, ObjectNotFoundError
from .logging import get_twig_logger
from .objects import Commit, ObjectKind
from .storage import ObjectStore

log = get_twig_logger("graph")


class CommitGraph:
    """
    Read-only view of the commit DAG held in an object store.

    Commits are loaded lazily and memoized by digest for the lifetime of
    the graph object, which lives for a single repository operation.
    """

    def __init__(self, objects: ObjectStore):
        self.objects = objects
        self._commits: Dict[str, Commit] = {}

    def commit(self, digest: str) -> Commit:
        """Load a commit by full digest, raising ObjectNotFoundError if absent."""
        if digest not in self._commits:
            self._commits[digest] = self.objects.get_commit(digest)
        return self._commits[digest]

    def parents(self, digest: str) -> Tuple[str, ...]:
        return self.commit(digest).parents

    def all_digests(self) -> List[str]:
        return self.objects.list_digests(ObjectKind.COMMIT)

    def resolve(self, partial: str) -> str:
        """
        Resolve a possibly abbreviated commit id to a full digest.

        Args:
            partial: Full digest or any non-empty prefix of one

        Returns:
            The full digest

        Raises:
            ObjectNotFoundError: If no commit matches
            AmbiguousIdentifierError: If the prefix matches several commits
        """
        partial = partial.strip().lower()
        if not partial:
            raise ObjectNotFoundError(partial)
        if self.objects.contains(partial, ObjectKind.COMMIT):
            return partial

        matches = [d for d in self.all_digests() if d.startswith(partial)]
        if not matches:
            raise ObjectNotFoundError(partial)
        if len(matches) > 1:
            raise AmbiguousIdentifierError(partial, matches)
        return matches[0]

    def first_parent_history(self, digest: str) -> Iterator[Commit]:
        """Yield commits from ``digest`` back to the root along first parents."""
        current: Optional[str] = digest
        while current is not None:
            commit = self.commit(current)
            yield commit
            current = commit.first_parent

    def ancestors(self, digest: str) -> Iterator[str]:
        """
        Yield ``digest`` and every commit reachable from it.

        Breadth-first over all parent edges, parents visited in order, so
        merge commits contribute both lines of history.
        """
        visited = {digest}
        queue: Deque[str] = deque([digest])
        while queue:
            current = queue.popleft()
            yield current
            for parent in self.parents(current):
                if parent not in visited:
                    visited.add(parent)
                    queue.append(parent)

    def distances(self, digest: str) -> Dict[str, int]:
        """
        Shortest edge distance from ``digest`` to each of its ancestors.

        The returned dict preserves breadth-first discovery order.
        """
        dist: Dict[str, int] = {digest: 0}
        queue: Deque[str] = deque([digest])
        while queue:
            current = queue.popleft()
            for parent in self.parents(current):
                if parent not in dist:
                    dist[parent] = dist[current] + 1
                    queue.append(parent)
        return dist

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return any(d == ancestor for d in self.ancestors(descendant))

    def merge_base(self, a: str, b: str) -> Optional[str]:
        """
        Find the nearest common ancestor of two commits.

        Candidates are the lowest common ancestors: commits reachable
        from both ``a`` and ``b`` that are not an ancestor of another
        common ancestor. Among those, the winner is the one closest to
        ``b``; ties go to the one closest to ``a``, then to the earlier in
        ``b``'s breadth-first order. Every commit shares the root, so a
        result exists for any two commits of one repository.

        Args:
            a: Digest of the first commit (the current branch tip)
            b: Digest of the second commit (the branch being merged in)

        Returns:
            Digest of the merge base, or None if the commits share no history
        """
        if a == b:
            return a

        from_a = self.distances(a)
        from_b = self.distances(b)
        common = [d for d in from_b if d in from_a]

        dominated: Set[str] = set()
        for candidate in common:
            if candidate in dominated:
                continue
            queue: Deque[str] = deque(self.parents(candidate))
            while queue:
                current = queue.popleft()
                if current in dominated:
                    continue
                dominated.add(current)
                queue.extend(self.parents(current))

        lowest = [d for d in common if d not in dominated]
        best: Optional[str] = None
        if lowest:
            order = {d: i for i, d in enumerate(from_b)}
            best = min(lowest, key=lambda d: (from_b[d], from_a[d], order[d]))

        log.debug(
            f"Merge base of {a[:8]} and {b[:8]}: {best[:8] if best else None}",
            a=a,
            b=b,
            base=best,
        )
        return best
