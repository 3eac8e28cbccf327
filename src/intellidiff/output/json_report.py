"""JSON serialisation of the diff model."""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Sequence, Union

from intellidiff.git.models import Change, DiffFile, Hunk


def change_to_dict(change: Change) -> Dict[str, Any]:
    data: Dict[str, Any] = {"kind": change.kind.value, "text": change.text}
    if change.old_line_no is not None:
        data["old_line"] = change.old_line_no
    if change.new_line_no is not None:
        data["new_line"] = change.new_line_no
    return data


def hunk_to_dict(hunk: Hunk) -> Dict[str, Any]:
    return {
        "old_start": hunk.old_start,
        "old_lines": hunk.old_lines,
        "new_start": hunk.new_start,
        "new_lines": hunk.new_lines,
        "changes": [change_to_dict(c) for c in hunk.changes],
    }


def _content_value(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        return base64.b64encode(content).decode("ascii")
    return content


def file_to_dict(diff_file: DiffFile, *, include_hunks: bool = True) -> Dict[str, Any]:
    """Convert a DiffFile to a JSON-serialisable dict."""
    data: Dict[str, Any] = {
        "old_path": diff_file.old_path,
        "new_path": diff_file.new_path,
        "status": diff_file.status.value,
        "is_binary": diff_file.is_binary,
        "additions": diff_file.additions,
        "deletions": diff_file.deletions,
    }
    if include_hunks:
        data["hunks"] = [hunk_to_dict(h) for h in diff_file.hunks]
    for key in ("old_content", "new_content"):
        content = getattr(diff_file, key)
        if content is None:
            continue
        if isinstance(content, bytes):
            data["content_encoding"] = "base64"
        data[key] = _content_value(content)
    return data


def to_dict(files: Sequence[DiffFile], *, include_hunks: bool = True) -> Dict[str, Any]:
    file_list: List[Dict[str, Any]] = [
        file_to_dict(f, include_hunks=include_hunks) for f in files
    ]
    return {
        "version": "1.0",
        "total_files": len(files),
        "additions": sum(f.additions for f in files),
        "deletions": sum(f.deletions for f in files),
        "files": file_list,
    }


def render(files: Sequence[DiffFile], *, include_hunks: bool = True) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(files, include_hunks=include_hunks), indent=2)
