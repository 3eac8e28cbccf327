"""Shared test fixtures: sample diffs and temporary git repositories."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    """Run git in *repo*, failing the test on error."""
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout


@pytest.fixture
def sample_diff_modified() -> str:
    """One modified file with a single hunk."""
    return textwrap.dedent("""\
        diff --git a/src/app.py b/src/app.py
        index 1234567..abcdef0 100644
        --- a/src/app.py
        +++ b/src/app.py
        @@ -3,4 +3,6 @@ def main():
         import os
        -import sys
        +import sys  # noqa
        +import json
        +import re
         x = 1
         y = 2
    """)


@pytest.fixture
def sample_diff_added() -> str:
    """A newly added text file."""
    return textwrap.dedent("""\
        diff --git a/src/new.txt b/src/new.txt
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/src/new.txt
        @@ -0,0 +1,2 @@
        +hello
        +world
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    """A deleted text file."""
    return textwrap.dedent("""\
        diff --git a/old.py b/old.py
        deleted file mode 100644
        index abc1234..0000000
        --- a/old.py
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -a = 1
        -b = 2
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A modified binary file."""
    return textwrap.dedent("""\
        diff --git a/img.png b/img.png
        index 1111111..2222222 100644
        Binary files a/img.png and b/img.png differ
    """)


@pytest.fixture
def sample_diff_binary_added() -> str:
    """A new binary file, marker after the mode and index lines."""
    return textwrap.dedent("""\
        diff --git a/logo.png b/logo.png
        new file mode 100644
        index 0000000..3333333
        Binary files /dev/null and b/logo.png differ
    """)


@pytest.fixture
def sample_diff_rename_headers() -> str:
    """Two-path headers with no hunk."""
    return textwrap.dedent("""\
        diff --git a/docs/old.md b/docs/new.md
        --- a/docs/old.md
        +++ b/docs/new.md
    """)


@pytest.fixture
def sample_diff_pure_rename() -> str:
    """A 100% similarity rename as git prints it (no path headers)."""
    return textwrap.dedent("""\
        diff --git a/old.txt b/new.txt
        similarity index 100%
        rename from old.txt
        rename to new.txt
    """)


@pytest.fixture
def sample_diff_two_files(sample_diff_modified, sample_diff_added) -> str:
    return sample_diff_modified + sample_diff_added


@pytest.fixture
def sample_diff_malformed_hunk() -> str:
    """A bad hunk header followed by valid hunks and a second file."""
    return textwrap.dedent("""\
        diff --git a/a.txt b/a.txt
        --- a/a.txt
        +++ b/a.txt
        @@ bogus @@
        +ignored
        -ignored too
        @@ -1 +1 @@
        -old
        +new
        diff --git a/b.txt b/b.txt
        --- a/b.txt
        +++ b/b.txt
        @@ -1,2 +1,2 @@
         keep
        -x
        +y
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' markers."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        index abc1234..def5678 100644
        --- a/data.txt
        +++ b/data.txt
        @@ -1 +1 @@
        -old last line
        \\ No newline at end of file
        +new last line
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_diff_header_lookalikes() -> str:
    """Content lines that look like path headers."""
    return textwrap.dedent("""\
        diff --git a/notes.md b/notes.md
        --- a/notes.md
        +++ b/notes.md
        @@ -1,2 +1,2 @@
        --- a/fake
        +++ b/fake
         tail
    """)


@pytest.fixture
def sample_diff_quoted_paths() -> str:
    """Paths git C-quotes: a non-ASCII name and a name with a tab."""
    return textwrap.dedent("""\
        diff --git "a/caf\\303\\251.txt" "b/caf\\303\\251.txt"
        index 1111111..2222222 100644
        --- "a/caf\\303\\251.txt"
        +++ "b/caf\\303\\251.txt"
        @@ -1 +1,2 @@
         crème
        +brûlée
        diff --git "a/tab\\there.txt" "b/tab\\there.txt"
        new file mode 100644
        index 0000000..3333333
        --- /dev/null
        +++ "b/tab\\there.txt"
        @@ -0,0 +1 @@
        +x
    """)


def _init_repo(path: Path) -> Path:
    subprocess.run(["git", "init", str(path)], capture_output=True, check=True)
    git(path, "config", "user.email", "test@test.com")
    git(path, "config", "user.name", "Test")
    git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    _init_repo(tmp_path)
    (tmp_path / "README.md").write_text("# Test\n")
    git(tmp_path, "add", ".")
    git(tmp_path, "commit", "-m", "init")
    return tmp_path


@pytest.fixture
def tmp_git_history(tmp_path: Path) -> Path:
    """A repository whose HEAD~1..HEAD touches every kind of file change.

    keep.txt modified (+2 -1), gone.txt deleted, move_me.txt renamed to
    moved.txt unchanged, new.txt added, image.bin added as binary.
    """
    _init_repo(tmp_path)
    (tmp_path / "README.md").write_text("# Test\n")
    (tmp_path / "keep.txt").write_text("a\nb\nc\n")
    (tmp_path / "gone.txt").write_text("bye\n")
    (tmp_path / "move_me.txt").write_text("same content\nline2\nline3\n")
    git(tmp_path, "add", ".")
    git(tmp_path, "commit", "-m", "base")

    (tmp_path / "keep.txt").write_text("a\nB\nc\nd\n")
    (tmp_path / "gone.txt").unlink()
    git(tmp_path, "mv", "move_me.txt", "moved.txt")
    (tmp_path / "new.txt").write_text("fresh\n")
    (tmp_path / "image.bin").write_bytes(b"\x00\x01\x02\xff\x00")
    git(tmp_path, "add", "-A")
    git(tmp_path, "commit", "-m", "change")
    return tmp_path
