"""Data models for parsed diffs and git references."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


class DiffModelError(ValueError):
    """Raised when a diff record is constructed with invalid values."""


class ChangeKind(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    BINARY = "binary"


class ReferenceType(str, Enum):
    COMMIT = "commit"
    WORKING_TREE = "working_tree"
    STAGED = "staged"


@dataclass(frozen=True, slots=True)
class Change:
    """A single line within a hunk, marker character stripped."""

    kind: ChangeKind
    text: str
    old_line_no: Optional[int] = None
    new_line_no: Optional[int] = None


@dataclass(frozen=True)
class Hunk:
    """One ``@@`` region of a file diff."""

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    changes: Tuple[Change, ...] = ()

    def __post_init__(self) -> None:
        for name in ("old_start", "old_lines", "new_start", "new_lines"):
            if getattr(self, name) < 0:
                raise DiffModelError(f"Hunk.{name} must be non-negative")
        if not isinstance(self.changes, tuple):
            object.__setattr__(self, "changes", tuple(self.changes))

    def _count(self, kind: ChangeKind) -> int:
        return sum(1 for c in self.changes if c.kind == kind)

    @property
    def added(self) -> int:
        return self._count(ChangeKind.ADDED)

    @property
    def deleted(self) -> int:
        return self._count(ChangeKind.DELETED)

    @property
    def context(self) -> int:
        return self._count(ChangeKind.CONTEXT)


@dataclass(frozen=True)
class DiffFile:
    """One file's change between two revisions.

    ``hunks`` is empty for binary files and for metadata-only changes
    (pure renames, mode changes, entries built from a name-status listing).
    ``additions``/``deletions`` come from ``git diff --numstat`` and stay 0
    when only the unified diff text was parsed. Content snapshots are text,
    or raw bytes for binary files.
    """

    old_path: str
    new_path: str
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: Tuple[Hunk, ...] = ()
    old_content: Optional[Union[str, bytes]] = field(default=None, repr=False)
    new_content: Optional[Union[str, bytes]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.additions < 0 or self.deletions < 0:
            raise DiffModelError("additions and deletions must be non-negative")
        if not isinstance(self.hunks, tuple):
            object.__setattr__(self, "hunks", tuple(self.hunks))
        if self.is_binary and self.hunks:
            raise DiffModelError(f"binary file {self.path!r} cannot carry hunks")

    @property
    def path(self) -> str:
        return self.new_path or self.old_path

    @property
    def is_metadata_only(self) -> bool:
        return not self.hunks

    def changes(self) -> List[Change]:
        """All changes across hunks, in source order."""
        return [c for h in self.hunks for c in h.changes]


_WORKING_TREE_NAMES = {"worktree", "working-tree", "working_tree"}
_STAGED_NAMES = {"staged", "index", "cached"}


@dataclass(frozen=True)
class GitReference:
    """One side of a comparison: a commit-ish, the index, or the working tree."""

    ref_type: ReferenceType
    name: str
    commit_id: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "GitReference":
        """Build a reference from a CLI argument.

        ``WORKTREE`` and ``STAGED`` (case-insensitive) select the working
        tree and the index; anything else is treated as a commit-ish.
        """
        lowered = text.strip().lower()
        if lowered in _WORKING_TREE_NAMES:
            return cls(ReferenceType.WORKING_TREE, "working tree")
        if lowered in _STAGED_NAMES:
            return cls(ReferenceType.STAGED, "staged")
        return cls(ReferenceType.COMMIT, text.strip())

    @property
    def revision(self) -> Optional[str]:
        """Commit-ish for this reference; None for the index and working tree."""
        if self.ref_type in (ReferenceType.WORKING_TREE, ReferenceType.STAGED):
            return None
        return self.commit_id or self.name

    def show_spec(self, path: str) -> str:
        """Object spec for ``git show`` of *path* at this reference."""
        if self.ref_type == ReferenceType.STAGED:
            return f":{path}"
        return f"{self.revision}:{path}"
