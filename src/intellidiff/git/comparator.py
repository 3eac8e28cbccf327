"""Reference comparison: file metadata from name-status and numstat listings.

The unified diff text says which lines changed but not reliably how git
classifies each file (renames in particular) or how many lines it counts.
This module reads those from ``git diff --name-status`` and
``git diff --numstat`` and reconciles them with parsed DiffFile records.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from intellidiff.git.diff_parser import parse_diff, unquote_path
from intellidiff.git.models import DiffFile, FileStatus, GitReference

logger = logging.getLogger(__name__)

BINARY_PLACEHOLDER = "-"

_STATUS_LETTERS = {
    "A": FileStatus.ADDED,
    "D": FileStatus.DELETED,
    "R": FileStatus.RENAMED,
}

# "dir/{old => new}/file" and "old => new" in numstat rows of renamed files
_BRACE_RENAME_RE = re.compile(r"^(?P<pre>.*)\{(?P<old>.*) => (?P<new>.*)\}(?P<post>.*)$")
_PLAIN_RENAME_RE = re.compile(r"^(?P<old>.+) => (?P<new>.+)$")


class ComparisonError(Exception):
    """Raised when a comparison yields nothing for a requested path."""


class DiffSource(Protocol):
    """The git listings a ReferenceComparator consumes (see GitRunner)."""

    def name_status(
        self, base: GitReference, compare: GitReference, paths: Optional[Sequence[str]] = None
    ) -> str: ...

    def numstat(
        self, base: GitReference, compare: GitReference, paths: Optional[Sequence[str]] = None
    ) -> str: ...

    def unified_diff(
        self,
        base: GitReference,
        compare: GitReference,
        paths: Optional[Sequence[str]] = None,
        *,
        context_lines: Optional[int] = None,
    ) -> str: ...

    def file_content(self, ref: GitReference, path: str) -> Optional[str]: ...

    def file_bytes(self, ref: GitReference, path: str) -> Optional[bytes]: ...


@dataclass(frozen=True)
class NumstatRow:
    """One ``git diff --numstat`` row; counts are None for binary files."""

    path: str
    additions: Optional[int]
    deletions: Optional[int]

    @property
    def is_binary(self) -> bool:
        return self.additions is None and self.deletions is None


def status_from_letter(letter: str) -> FileStatus:
    """Map a name-status letter (``M``, ``A``, ``R100``...) to a FileStatus."""
    return _STATUS_LETTERS.get(letter[:1], FileStatus.MODIFIED)


def parse_name_status(text: str) -> List[DiffFile]:
    """Parse ``git diff --name-status`` output into metadata-only DiffFiles."""
    files: List[DiffFile] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        letter, *quoted = line.split("\t")
        paths = [unquote_path(p) for p in quoted]
        if not paths:
            logger.debug("Skipping name-status row without a path: %r", line)
            continue
        old_path, new_path = (paths[0], paths[1]) if len(paths) > 1 else (paths[0], paths[0])
        files.append(
            DiffFile(old_path=old_path, new_path=new_path, status=status_from_letter(letter))
        )
    return files


def resolve_rename_path(path: str) -> str:
    """Return the destination of a numstat rename path, else *path* unchanged."""
    m = _BRACE_RENAME_RE.match(path)
    if m:
        joined = f"{m.group('pre')}{m.group('new')}{m.group('post')}"
        # "{old => }/f" leaves a doubled separator behind
        return joined.replace("//", "/")
    m = _PLAIN_RENAME_RE.match(path)
    if m:
        return m.group("new")
    return path


def _count(value: str) -> Optional[int]:
    if value == BINARY_PLACEHOLDER:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_numstat(text: str) -> List[NumstatRow]:
    """Parse ``git diff --numstat`` output."""
    rows: List[NumstatRow] = []
    for line in text.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        added, deleted, path = parts
        path = resolve_rename_path(unquote_path(path))
        rows.append(NumstatRow(path, _count(added), _count(deleted)))
    return rows


def _index_by_path(files: Sequence[DiffFile]) -> Dict[str, int]:
    """Map new paths, then old paths, to positions; new paths win on clashes."""
    index: Dict[str, int] = {}
    for pos, f in enumerate(files):
        index.setdefault(f.new_path, pos)
    for pos, f in enumerate(files):
        index.setdefault(f.old_path, pos)
    return index


def apply_numstat(files: Sequence[DiffFile], rows: Iterable[NumstatRow]) -> List[DiffFile]:
    """Return *files* with binary flags and line counts taken from *rows*."""
    result = list(files)
    index = _index_by_path(result)
    for row in rows:
        pos = index.get(row.path)
        if pos is None:
            logger.debug("Ignoring numstat row with no name-status entry: %s", row.path)
            continue
        if row.is_binary:
            result[pos] = replace(result[pos], is_binary=True, additions=0, deletions=0)
        else:
            result[pos] = replace(
                result[pos],
                additions=row.additions or 0,
                deletions=row.deletions or 0,
            )
    return result


def merge_files(parsed: Sequence[DiffFile], metadata: Sequence[DiffFile]) -> List[DiffFile]:
    """Reconcile parser output with comparator metadata.

    Metadata ``status``, ``is_binary``, ``additions`` and ``deletions`` take
    precedence; hunks, paths and content always come from *parsed*. Files
    keep the parsed order, and metadata entries with no parsed counterpart
    are appended in listing order.
    """
    meta_index = _index_by_path(metadata)
    used = set()
    merged: List[DiffFile] = []

    for f in parsed:
        pos = meta_index.get(f.new_path)
        if pos is None:
            pos = meta_index.get(f.old_path)
        if pos is None or pos in used:
            merged.append(f)
            continue
        used.add(pos)
        meta = metadata[pos]
        is_binary = meta.is_binary
        if is_binary and f.hunks:
            logger.warning("%s reported binary but has text hunks; keeping hunks", f.path)
            is_binary = False
        merged.append(
            replace(
                f,
                status=meta.status,
                is_binary=is_binary,
                additions=meta.additions,
                deletions=meta.deletions,
            )
        )

    merged.extend(meta for pos, meta in enumerate(metadata) if pos not in used)
    return merged


class ReferenceComparator:
    """Assemble DiffFile lists for a pair of git references.

    All git access goes through *source*; its errors (GitError) propagate
    unchanged since no meaningful file list exists without its output.
    """

    def __init__(self, source: DiffSource, *, context_lines: int = 10000) -> None:
        self.source = source
        self.context_lines = context_lines

    def compare(
        self,
        base: GitReference,
        compare: GitReference,
        paths: Optional[Sequence[str]] = None,
    ) -> List[DiffFile]:
        """Changed files with status, binary flag and line counts (no hunks)."""
        files = parse_name_status(self.source.name_status(base, compare, paths))
        rows = parse_numstat(self.source.numstat(base, compare, paths))
        files = apply_numstat(files, rows)
        logger.info("Compared %s..%s: %d file(s)", base.name, compare.name, len(files))
        return files

    def diff(
        self,
        base: GitReference,
        compare: GitReference,
        paths: Optional[Sequence[str]] = None,
        *,
        context_lines: Optional[int] = None,
    ) -> List[DiffFile]:
        """Parsed hunks for every changed file, merged with compare() metadata."""
        text = self.source.unified_diff(base, compare, paths, context_lines=context_lines)
        return merge_files(parse_diff(text), self.compare(base, compare, paths))

    def _entry_for(self, base: GitReference, compare: GitReference, path: str) -> DiffFile:
        """The compare() entry for *path*, matched on either side of a rename."""
        # unfiltered: a single-path pathspec hides the other side of a rename
        files = self.compare(base, compare)
        for f in files:
            if f.new_path == path:
                return f
        for f in files:
            if f.old_path == path:
                return f
        raise ComparisonError(f"No diff found for file: {path}")

    def file_diff(self, base: GitReference, compare: GitReference, path: str) -> DiffFile:
        """Full-context diff of one file, with old and new content attached.

        Text files carry ``str`` content and binary files the raw ``bytes``;
        the side a file is missing from (added or deleted) stays None.
        """
        entry = self._entry_for(base, compare, path)
        pathspec = list(dict.fromkeys([entry.old_path, entry.new_path]))
        text = self.source.unified_diff(
            base, compare, pathspec, context_lines=self.context_lines
        )
        merged = merge_files(parse_diff(text), [entry])
        diff_file = next(
            (f for f in merged if f.new_path == entry.new_path), merged[-1]
        )

        read = self.source.file_bytes if diff_file.is_binary else self.source.file_content
        old_content = new_content = None
        if diff_file.status != FileStatus.ADDED:
            old_content = read(base, diff_file.old_path)
        if diff_file.status != FileStatus.DELETED:
            new_content = read(compare, diff_file.new_path)
        return replace(diff_file, old_content=old_content, new_content=new_content)
