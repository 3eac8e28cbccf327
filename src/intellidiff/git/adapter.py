"""Git subprocess wrapper: diff listings and file content at a reference."""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TypeVar

from intellidiff.git.models import GitReference, ReferenceType

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING_PATH_RE = re.compile(r"does not exist|exists on disk, but not in")


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _invoke(
    args: List[str], cwd: Path, timeout: int, *, text: bool
) -> subprocess.CompletedProcess:
    logger.debug("git %s", " ".join(args))
    decode = {"encoding": "utf-8", "errors": "replace"} if text else {}
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            **decode,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr if text else result.stderr.decode("utf-8", errors="replace")
        stderr = stderr.strip()
        # git diff exits non-zero without "fatal" for warnings only
        if stderr and "fatal" in stderr.lower():
            raise GitError(f"git error: {stderr}")
    return result


def _run_git(args: List[str], cwd: Path, timeout: int = 30) -> str:
    """Run a git command and return stdout. Raises GitError on failure."""
    return _invoke(args, cwd, timeout, text=True).stdout


def _run_git_bytes(args: List[str], cwd: Path, timeout: int = 30) -> bytes:
    """Like _run_git, but stdout is returned undecoded."""
    return _invoke(args, cwd, timeout, text=False).stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.strip())


def revision_args(base: GitReference, compare: GitReference) -> List[str]:
    """``git diff`` arguments that show the change from *base* to *compare*.

    git diff only compares a commit against the index (``--staged``) or the
    working tree in that direction, so comparisons whose base is the index
    or the working tree are expressed with ``-R``.
    """
    worktree, staged = ReferenceType.WORKING_TREE, ReferenceType.STAGED
    if base.revision is None and base.ref_type == compare.ref_type:
        raise GitError(f"cannot compare the {base.name} with itself")

    if base.revision is not None:
        if compare.ref_type == worktree:
            return [base.revision]
        if compare.ref_type == staged:
            return ["--staged", base.revision]
        return [base.revision, compare.revision]

    if base.ref_type == staged:
        if compare.ref_type == worktree:
            return []
        return ["-R", "--staged", compare.revision]

    # base is the working tree
    if compare.ref_type == staged:
        return ["-R"]
    return ["-R", compare.revision]


class GitRunner:
    """Runs the git listings a comparison needs inside one repository."""

    def __init__(
        self,
        repo_root: Path,
        *,
        timeout: int = 30,
        find_renames: bool = True,
    ) -> None:
        self.repo_root = repo_root
        self.timeout = timeout
        self.find_renames = find_renames

    def _diff(
        self,
        options: List[str],
        base: GitReference,
        compare: GitReference,
        paths: Optional[Sequence[str]],
    ) -> str:
        # non-ASCII paths verbatim; git still quotes tabs, quotes and backslashes
        args = ["-c", "core.quotePath=false", "diff", "--no-color", *options]
        args.append("-M" if self.find_renames else "--no-renames")
        args += revision_args(base, compare)
        if paths:
            args += ["--", *paths]
        return _run_git(args, cwd=self.repo_root, timeout=self.timeout)

    def name_status(
        self, base: GitReference, compare: GitReference, paths: Optional[Sequence[str]] = None
    ) -> str:
        """``git diff --name-status`` between two references."""
        return self._diff(["--name-status"], base, compare, paths)

    def numstat(
        self, base: GitReference, compare: GitReference, paths: Optional[Sequence[str]] = None
    ) -> str:
        """``git diff --numstat`` between two references."""
        return self._diff(["--numstat"], base, compare, paths)

    def unified_diff(
        self,
        base: GitReference,
        compare: GitReference,
        paths: Optional[Sequence[str]] = None,
        *,
        context_lines: Optional[int] = None,
    ) -> str:
        """Unified diff text, optionally with an enlarged context window."""
        options = [f"-U{context_lines}"] if context_lines is not None else []
        return self._diff(options, base, compare, paths)

    def _show(
        self, ref: GitReference, path: str, run: Callable[..., T]
    ) -> Optional[T]:
        try:
            return run(["show", ref.show_spec(path)], cwd=self.repo_root, timeout=self.timeout)
        except GitError as exc:
            if not _MISSING_PATH_RE.search(str(exc)):
                raise
            logger.debug("%s not present at %s", path, ref.name)
            return None

    def file_content(self, ref: GitReference, path: str) -> Optional[str]:
        """Text of *path* at *ref*, or None if it does not exist there."""
        if ref.ref_type == ReferenceType.WORKING_TREE:
            target = self.repo_root / path
            if not target.is_file():
                return None
            return target.read_text(encoding="utf-8", errors="replace")
        return self._show(ref, path, _run_git)

    def file_bytes(self, ref: GitReference, path: str) -> Optional[bytes]:
        """Raw bytes of *path* at *ref*, or None if it does not exist there."""
        if ref.ref_type == ReferenceType.WORKING_TREE:
            target = self.repo_root / path
            return target.read_bytes() if target.is_file() else None
        return self._show(ref, path, _run_git_bytes)
