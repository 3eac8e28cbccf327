"""Git interface layer: diff model, unified diff parser, reference comparison."""

from intellidiff.git.adapter import GitError, GitRunner, get_repo_root
from intellidiff.git.comparator import (
    ComparisonError,
    NumstatRow,
    ReferenceComparator,
    apply_numstat,
    merge_files,
    parse_name_status,
    parse_numstat,
)
from intellidiff.git.diff_parser import DiffParser, parse_diff
from intellidiff.git.models import (
    Change,
    ChangeKind,
    DiffFile,
    DiffModelError,
    FileStatus,
    GitReference,
    Hunk,
    ReferenceType,
)

__all__ = [
    "Change",
    "ChangeKind",
    "ComparisonError",
    "DiffFile",
    "DiffModelError",
    "DiffParser",
    "FileStatus",
    "GitError",
    "GitReference",
    "GitRunner",
    "Hunk",
    "NumstatRow",
    "ReferenceComparator",
    "ReferenceType",
    "apply_numstat",
    "get_repo_root",
    "merge_files",
    "parse_diff",
    "parse_name_status",
    "parse_numstat",
]
