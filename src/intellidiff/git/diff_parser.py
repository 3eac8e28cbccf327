"""Unified diff parser.

Turns ``git diff`` output into a list of DiffFile records, one per
``diff --git`` section, in input order. Malformed sections degrade
instead of aborting the parse: a bad hunk header drops that hunk and the
lines under it, and a section without ``---``/``+++`` headers takes its
paths from the ``diff --git`` line when that line can be split.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from intellidiff.git.models import Change, ChangeKind, DiffFile, FileStatus, Hunk

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"

# --- Line prefixes and patterns ---

_FILE_START = "diff --git"
_OLD_PREFIXES = ("--- a/", '--- "a/')
_NEW_PREFIXES = ("+++ b/", '+++ "b/')
_OLD_DEV_NULL = "--- " + DEV_NULL
_NEW_DEV_NULL = "+++ " + DEV_NULL
_HUNK_PREFIX = "@@"
_BINARY_LOOKAHEAD = 2

# a side is either a bare "a/path" or git's C-quoted "\"a/pa\\303\\251th\""
_QUOTED = r'"(?:[^"\\]|\\.)*"'
_DIFF_HEADER_RE = re.compile(
    rf"^diff --git (?P<old>{_QUOTED}|a/.*) (?P<new>{_QUOTED}|b/.*)$"
)
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@"
)
_BINARY_RE = re.compile(
    rf"^Binary files (?P<old>{_QUOTED}|a/.+?|/dev/null) "
    rf"and (?P<new>{_QUOTED}|b/.+|/dev/null) differ$"
)
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")

_MARKERS = {
    "+": ChangeKind.ADDED,
    "-": ChangeKind.DELETED,
    " ": ChangeKind.CONTEXT,
}

_C_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A, "v": 0x0B, "f": 0x0C, "r": 0x0D,
    '"': 0x22, "\\": 0x5C,
}
_OCTAL_DIGITS = "01234567"


def unquote_path(text: str) -> str:
    """Undo git's C-style path quoting.

    git wraps paths holding non-ASCII bytes, control characters, quotes or
    backslashes in double quotes and escapes those bytes (``"caf\\303\\251.txt"``).
    Unquoted text is returned unchanged.
    """
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        return text
    body = text[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            octal = body[i + 1:i + 4]
            if len(octal) == 3 and all(c in _OCTAL_DIGITS for c in octal):
                out.append(int(octal, 8) & 0xFF)
                i += 4
                continue
            escaped = _C_ESCAPES.get(body[i + 1])
            if escaped is not None:
                out.append(escaped)
                i += 2
                continue
        out += ch.encode("utf-8")
        i += 1
    return out.decode("utf-8", errors="replace")


def _side_path(token: str) -> str:
    """Path of one ``a/...`` / ``b/...`` side, quoted or not; /dev/null kept."""
    if token == DEV_NULL:
        return DEV_NULL
    return unquote_path(token)[2:]


def _header_path(line: str) -> str:
    """Path after a ``--- a/`` / ``+++ b/`` prefix, or the /dev/null sentinel."""
    # git appends a tab after paths containing spaces
    return _side_path(line[4:].rstrip("\t"))


@dataclass
class _HunkBuilder:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    changes: List[Change] = field(default_factory=list)
    old_seen: int = 0
    new_seen: int = 0

    @property
    def complete(self) -> bool:
        return self.old_seen >= self.old_lines and self.new_seen >= self.new_lines

    def add(self, kind: ChangeKind, text: str) -> None:
        old_no = new_no = None
        if kind != ChangeKind.ADDED:
            old_no = self.old_start + self.old_seen
            self.old_seen += 1
        if kind != ChangeKind.DELETED:
            new_no = self.new_start + self.new_seen
            self.new_seen += 1
        self.changes.append(Change(kind, text, old_line_no=old_no, new_line_no=new_no))

    def build(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            changes=tuple(self.changes),
        )


@dataclass
class _FileBuilder:
    old_path: str = ""
    new_path: str = ""
    status: FileStatus = FileStatus.MODIFIED
    is_binary: bool = False
    hunks: List[Hunk] = field(default_factory=list)
    header_paths: Optional[Tuple[str, str]] = None

    def set_new_path(self, path: str) -> None:
        self.new_path = path
        if self.old_path == DEV_NULL:
            self.status = FileStatus.ADDED
            self.old_path = self.new_path
        elif self.new_path == DEV_NULL:
            self.status = FileStatus.DELETED
            self.new_path = self.old_path

    def mark_binary(self, match: re.Match[str]) -> None:
        self.is_binary = True
        self.old_path = _side_path(match.group("old"))
        self.set_new_path(_side_path(match.group("new")))

    def build(self) -> DiffFile:
        if not self.old_path and not self.new_path and self.header_paths:
            self.old_path, self.new_path = self.header_paths
        return DiffFile(
            old_path=self.old_path,
            new_path=self.new_path,
            status=self.status,
            is_binary=self.is_binary,
            hunks=() if self.is_binary else tuple(self.hunks),
        )


@dataclass
class _ScanState:
    """Accumulator threaded through one scan: finished files plus open builders."""

    files: List[DiffFile] = field(default_factory=list)
    file: Optional[_FileBuilder] = None
    hunk: Optional[_HunkBuilder] = None

    @property
    def expecting_content(self) -> bool:
        return self.hunk is not None and not self.hunk.complete

    def flush_hunk(self) -> None:
        if self.hunk is not None and self.file is not None:
            self.file.hunks.append(self.hunk.build())
        self.hunk = None

    def flush_file(self) -> None:
        self.flush_hunk()
        if self.file is not None:
            self.files.append(self.file.build())
        self.file = None


def _find_binary_marker(lines: Sequence[str], idx: int) -> Optional[int]:
    """Index of a binary marker within the lookahead window after *idx*."""
    end = min(idx + 1 + _BINARY_LOOKAHEAD, len(lines))
    for j in range(idx + 1, end):
        if lines[j].startswith(_FILE_START):
            return None
        if _BINARY_RE.match(lines[j]):
            return j
    return None


def _open_hunk(line: str) -> Optional[_HunkBuilder]:
    m = _HUNK_HEADER_RE.match(line)
    if m is None:
        logger.debug("Malformed hunk header ignored: %r", line)
        return None
    old_start, old_lines, new_start, new_lines = (
        int(g) if g is not None else 1 for g in m.groups()
    )
    return _HunkBuilder(old_start, old_lines, new_start, new_lines)


def parse_lines(lines: Sequence[str]) -> List[DiffFile]:
    """Scan *lines* of unified diff text and return the files they describe."""
    state = _ScanState()
    idx = 0
    total = len(lines)

    while idx < total:
        line = lines[idx]
        idx += 1

        # --- diff --git header → new file ---
        if line.startswith(_FILE_START):
            state.flush_file()
            state.file = _FileBuilder()
            if (hm := _DIFF_HEADER_RE.match(line)):
                state.file.header_paths = (
                    _side_path(hm.group("old")), _side_path(hm.group("new"))
                )
            marker = _find_binary_marker(lines, idx - 1)
            if marker is not None:
                state.file.mark_binary(_BINARY_RE.match(lines[marker]))
                idx = marker + 1
            continue

        if state.file is None:
            continue

        # --- File headers, only between hunks ---
        if not state.expecting_content:
            if line.startswith(_OLD_PREFIXES) or line == _OLD_DEV_NULL:
                state.flush_hunk()
                state.file.old_path = _header_path(line)
                continue
            if line.startswith(_NEW_PREFIXES) or line == _NEW_DEV_NULL:
                state.flush_hunk()
                state.file.set_new_path(_header_path(line))
                continue

        # --- Hunk header ---
        if line.startswith(_HUNK_PREFIX):
            state.flush_hunk()
            if not state.file.is_binary:
                state.hunk = _open_hunk(line)
            continue

        # --- Extended header lines before the first hunk ---
        if state.hunk is None:
            if not state.file.hunks and not state.file.is_binary:
                if (bm := _BINARY_RE.match(line)):
                    state.file.mark_binary(bm)
                elif (rm := _RENAME_FROM_RE.match(line)):
                    state.file.old_path = unquote_path(rm.group(1))
                elif (rt := _RENAME_TO_RE.match(line)):
                    state.file.new_path = unquote_path(rt.group(1))
            continue

        # --- Content lines ---
        kind = _MARKERS.get(line[:1])
        if kind is not None:
            state.hunk.add(kind, line[1:])
        # anything else ("\ No newline at end of file") carries no change

    state.flush_file()
    return state.files


def parse_diff(diff_text: str) -> List[DiffFile]:
    """Parse unified diff text into DiffFile records, in input order."""
    return parse_lines(diff_text.split("\n"))


class DiffParser:
    """Parse unified diff text into DiffFile records.

    Usage::

        for diff_file in DiffParser(diff_text).parse():
            for hunk in diff_file.hunks:
                ...

    The parser holds only the input lines; every ``parse()`` call runs an
    independent scan, so one instance may be shared between threads.
    """

    def __init__(self, diff_text: str) -> None:
        self._lines = diff_text.split("\n")

    def parse(self) -> List[DiffFile]:
        return parse_lines(self._lines)
