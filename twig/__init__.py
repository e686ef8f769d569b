"""
twig - a small single-user version-control engine.

A content-addressed object store, a commit graph, a staging area and
branch pointers, with checkout, reset and three-way merge.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from twig.config import config

from twig.errors import TwigError
from twig.objects import Blob, Commit
from twig.merge import MergeResult, MergeStrategy
from twig.repository import Repository

__all__ = [
    "config",
    "__version__",
    "Blob",
    "Commit",
    "MergeResult",
    "MergeStrategy",
    "Repository",
    "TwigError",
]
