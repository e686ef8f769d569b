"""
Error types for the twig version-control engine.

Every failure the core can signal is a subclass of TwigError whose
string form is the single line shown to the user.
"""


class TwigError(Exception):
    """Base exception for version control errors."""

    pass


class NotARepositoryError(TwigError):
    def __init__(self) -> None:
        super().__init__("Not in an initialized twig directory.")


class RepositoryExistsError(TwigError):
    def __init__(self) -> None:
        super().__init__(
            "A twig version-control system already exists in the current directory."
        )


class ObjectNotFoundError(TwigError):
    """Raised when a digest has no object in the store."""

    def __init__(self, digest: str, kind: str = "commit") -> None:
        self.digest = digest
        self.kind = kind
        if kind == "commit":
            message = "No commit with that id exists."
        else:
            message = f"No {kind} with id {digest} exists."
        super().__init__(message)


class AmbiguousIdentifierError(TwigError):
    """Raised when an abbreviated commit id matches more than one commit."""

    def __init__(self, prefix: str, matches: list) -> None:
        self.prefix = prefix
        self.matches = sorted(matches)
        super().__init__(
            f"Commit id {prefix} is ambiguous ({len(self.matches)} matches)."
        )


class FileNotFoundInTreeError(TwigError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("File does not exist.")


class NothingToRemoveError(TwigError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("No reason to remove the file.")


class EmptyMessageError(TwigError):
    def __init__(self) -> None:
        super().__init__("Please enter a commit message.")


class NoChangesError(TwigError):
    def __init__(self) -> None:
        super().__init__("No changes added to the commit.")


class BranchExistsError(TwigError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("A branch with that name already exists.")


class BranchNotFoundError(TwigError):
    def __init__(
        self, name: str, message: str = "A branch with that name does not exist."
    ) -> None:
        self.name = name
        super().__init__(message)


class CannotRemoveActiveBranchError(TwigError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Cannot remove the current branch.")


class AlreadyOnBranchError(TwigError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("No need to checkout the current branch.")


class UntrackedFileConflictError(TwigError):
    """
    Raised before any write when an untracked working file would be
    overwritten with different content.

    Attributes:
        paths: Sorted paths of the offending untracked files
    """

    def __init__(self, paths: list) -> None:
        self.paths = sorted(paths)
        super().__init__(
            "There is an untracked file in the way; "
            "delete it, or add and commit it first."
        )


class SelfMergeError(TwigError):
    def __init__(self) -> None:
        super().__init__("Cannot merge a branch with itself.")


class UncommittedChangesError(TwigError):
    def __init__(self) -> None:
        super().__init__("You have uncommitted changes.")


class AlreadyUpToDateError(TwigError):
    def __init__(self) -> None:
        super().__init__("Given branch is an ancestor of the current branch.")


class FileNotInCommitError(TwigError):
    def __init__(self, path: str, digest: str) -> None:
        self.path = path
        self.digest = digest
        super().__init__("File does not exist in that commit.")


class NoMatchingCommitError(TwigError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__("Found no commit with that message.")
