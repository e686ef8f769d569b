"""
Object model for the twig repository.

Defines the two content-addressed object kinds, blobs and commits, and
the digest scheme used to name them in the object store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import hashlib
import json


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Y %z"


class ObjectKind(str, Enum):
    """Kinds of objects held by the object store."""

    BLOB = "blob"
    COMMIT = "commit"


def sha1_hex(*parts: bytes) -> str:
    """Hash the concatenation of the given byte strings."""
    h = hashlib.sha1()
    for part in parts:
        h.update(part)
    return h.hexdigest()


@dataclass(frozen=True)
class Blob:
    """
    Immutable snapshot of one file's bytes.

    Two blobs with identical content have the same digest and are
    stored once.
    """

    content: bytes

    kind = ObjectKind.BLOB

    @property
    def digest(self) -> str:
        return sha1_hex(self.content)

    def to_bytes(self) -> bytes:
        return self.content

    @classmethod
    def from_bytes(cls, data: bytes) -> "Blob":
        return cls(content=data)


@dataclass(frozen=True)
class Commit:
    """
    Immutable snapshot of the tracked-file mapping plus metadata.

    Attributes:
        message: Commit message
        timestamp: Creation time, always timezone-aware
        parents: Zero (root), one, or two (merge) parent digests; for a
            merge the first parent is the branch merged into
        tracked: Mapping from repository path to blob digest
    """

    message: str
    timestamp: datetime
    parents: Tuple[str, ...] = ()
    tracked: Dict[str, str] = field(default_factory=dict)

    kind = ObjectKind.COMMIT

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            raise ValueError("Commit timestamp must carry a timezone")
        if len(self.parents) > 2:
            raise ValueError("A commit has at most two parents")

    @property
    def digest(self) -> str:
        """
        Content address of the commit.

        Covers the message, parent digests, timestamp and the tracked
        mapping, so commits that share metadata but snapshot different
        trees never collide.
        """
        identity = {
            "message": self.message,
            "parents": list(self.parents),
            "timestamp": self.timestamp.isoformat(),
            "tracked": self.tracked,
        }
        return sha1_hex(json.dumps(identity, sort_keys=True).encode("utf-8"))

    @property
    def first_parent(self) -> Optional[str]:
        return self.parents[0] if self.parents else None

    @property
    def is_merge(self) -> bool:
        return len(self.parents) == 2

    def timestamp_repr(self) -> str:
        """Timestamp formatted for log output, e.g. ``Thu Jan 01 00:00:00 1970 +0000``."""
        return self.timestamp.strftime(TIMESTAMP_FORMAT)

    def blob_digest(self, path: str) -> Optional[str]:
        return self.tracked.get(path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert commit to dictionary for serialization."""
        return {
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "parents": list(self.parents),
            "tracked": dict(sorted(self.tracked.items())),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        """Create commit from dictionary."""
        return cls(
            message=data["message"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            parents=tuple(data.get("parents", [])),
            tracked=dict(data.get("tracked", {})),
        )

    def to_json(self) -> str:
        """Convert commit to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "Commit":
        """Create commit from JSON string."""
        return cls.from_dict(json.loads(json_str))

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Commit":
        return cls.from_json(data.decode("utf-8"))


def create_root_commit(message: str = "initial commit") -> Commit:
    """Create the parentless, empty commit every repository starts from."""
    return Commit(message=message, timestamp=EPOCH, parents=(), tracked={})


def create_commit(
    message: str,
    parents: Tuple[str, ...],
    tracked: Dict[str, str],
    timestamp: Optional[datetime] = None,
) -> Commit:
    """Create a commit stamped with the current local time."""
    return Commit(
        message=message,
        timestamp=timestamp or datetime.now().astimezone(),
        parents=tuple(parents),
        tracked=dict(tracked),
    )
