"""
Shell config editing — text surgery on ``.zshrc``/``.zprofile``/``.bashrc``.

Two layers:

    pure transforms   (text in -> text out + change count, no I/O)
    ShellConfigEditor (read -> apply transforms -> atomic write + backup)

The transforms are line-oriented and idempotent: applying the same
edit twice changes nothing the second time.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Pure transforms
# ═══════════════════════════════════════════════════════════════════


def _split(text: str) -> tuple[list[str], bool]:
    return text.splitlines(), text.endswith("\n")


def _join(lines: list[str], trailing_newline: bool) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + ("\n" if trailing_newline else "")


def remove_blocks(text: str, start: str, end: str) -> tuple[str, int]:
    """Delete every block from a line matching ``start`` through the
    next line matching ``end`` (inclusive).

    ``start`` and ``end`` are regular expressions searched within each
    line. A block may open and close on the same line when ``end``
    matches after the ``start`` match. An unterminated block runs to
    end of file.

    Returns:
        (new_text, number_of_lines_removed)
    """
    start_re = re.compile(start)
    end_re = re.compile(end)
    lines, trailing = _split(text)
    kept: list[str] = []
    removed = 0
    inside = False

    for line in lines:
        if not inside:
            m = start_re.search(line)
            if m is None:
                kept.append(line)
                continue
            removed += 1
            inside = end_re.search(line, m.end()) is None
            continue
        removed += 1
        if end_re.search(line):
            inside = False

    if not removed:
        return text, 0
    return _join(kept, trailing), removed


def remove_lines(text: str, patterns: Iterable[str]) -> tuple[str, int]:
    """Delete every line matching any of the regular expressions."""
    compiled = [re.compile(p) for p in patterns]
    lines, trailing = _split(text)
    kept = [line for line in lines if not any(rx.search(line) for rx in compiled)]
    removed = len(lines) - len(kept)
    if not removed:
        return text, 0
    return _join(kept, trailing), removed


def set_assignment(text: str, name: str, value: str) -> tuple[str, int]:
    """Rewrite ``NAME=...`` lines as ``NAME="value"``.

    Only existing assignments are rewritten; a file without one is left
    untouched. Lines already holding the value don't count as changes.
    """
    pattern = re.compile(rf"^{re.escape(name)}=.*$")
    wanted = f'{name}="{value}"'
    lines, trailing = _split(text)
    changed = 0
    for i, line in enumerate(lines):
        if pattern.match(line) and line != wanted:
            lines[i] = wanted
            changed += 1
    if not changed:
        return text, 0
    return _join(lines, trailing), changed


_ARRAY_RE = r"^(\s*{name}=\()([^)]*)(\).*)$"


def array_contains(text: str, name: str, item: str) -> bool:
    rx = re.compile(_ARRAY_RE.format(name=re.escape(name)))
    for line in text.splitlines():
        m = rx.match(line)
        if m and item in m.group(2).split():
            return True
    return False


def add_to_array(text: str, name: str, item: str) -> tuple[str, int]:
    """Append ``item`` to a single-line ``name=(a b c)`` array.

    No-op when the item is already listed or the array is missing.
    """
    if array_contains(text, name, item):
        return text, 0
    rx = re.compile(_ARRAY_RE.format(name=re.escape(name)))
    lines, trailing = _split(text)
    for i, line in enumerate(lines):
        m = rx.match(line)
        if m:
            items = m.group(2).split()
            items.append(item)
            lines[i] = f"{m.group(1)}{' '.join(items)}{m.group(3)}"
            return _join(lines, trailing), 1
    return text, 0


def append_line(text: str, line: str) -> tuple[str, int]:
    """Append ``line`` unless an identical line is already present."""
    if line in text.splitlines():
        return text, 0
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}{line}\n", 1


# ── Edit descriptors ────────────────────────────────────────────

EDIT_OPS = ("remove_block", "remove_lines", "set_assignment", "add_to_array", "append_line")


def apply_edit(text: str, edit: dict[str, Any]) -> tuple[str, int]:
    """Apply one edit descriptor (as carried in action params)."""
    op = edit.get("op")
    if op == "remove_block":
        return remove_blocks(text, edit["start"], edit["end"])
    if op == "remove_lines":
        return remove_lines(text, edit["patterns"])
    if op == "set_assignment":
        return set_assignment(text, edit["name"], edit["value"])
    if op == "add_to_array":
        return add_to_array(text, edit["name"], edit["item"])
    if op == "append_line":
        return append_line(text, edit["line"])
    raise ValueError(f"Unknown edit op: {op!r}")


def describe_edit(edit: dict[str, Any]) -> str:
    """One-line human description of an edit descriptor."""
    op = edit.get("op")
    if op == "remove_block":
        return f"delete block '{edit['start']}' .. '{edit['end']}'"
    if op == "remove_lines":
        return "delete lines matching " + ", ".join(f"'{p}'" for p in edit["patterns"])
    if op == "set_assignment":
        return f'set {edit["name"]}="{edit["value"]}"'
    if op == "add_to_array":
        return f"add '{edit['item']}' to {edit['name']}=(...)"
    if op == "append_line":
        return f"append '{edit['line']}'"
    return f"unknown edit {op!r}"


# ═══════════════════════════════════════════════════════════════════
#  File editor
# ═══════════════════════════════════════════════════════════════════


@dataclass
class EditResult:
    """What happened to one file."""

    path: Path
    existed: bool
    changes: int = 0
    backup: Path | None = None
    details: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.changes > 0


class ShellConfigEditor:
    """Apply edit descriptors to a file, atomically, keeping a backup.

    The first time a file is modified by this editor a copy is saved as
    ``<file>.backup.<stamp>`` beside it; later edits in the same run keep
    that first copy so it always holds the pre-run content.
    """

    def __init__(self, stamp: str | None = None):
        self.stamp = stamp or datetime.now().strftime("%Y%m%d_%H%M%S")

    def backup_path(self, path: Path) -> Path:
        return path.with_name(f"{path.name}.backup.{self.stamp}")

    def edit(
        self,
        path: Path,
        edits: list[dict[str, Any]],
        create: bool = False,
    ) -> EditResult:
        """Apply ``edits`` in order. Raises OSError/ValueError on failure."""
        existed = path.is_file()
        result = EditResult(path=path, existed=existed)
        if not existed and not create:
            return result

        original = path.read_text(encoding="utf-8") if existed else ""
        text = original
        for edit in edits:
            text, count = apply_edit(text, edit)
            if count:
                result.details.append(f"{describe_edit(edit)} ({count})")
            result.changes += count

        if text == original:
            result.changes = 0
            return result

        if existed:
            backup = self.backup_path(path)
            if not backup.exists():
                shutil.copy2(path, backup)
            result.backup = backup

        _write_atomically(path, text)
        logger.debug("Edited %s: %s", path, "; ".join(result.details))
        return result


def _write_atomically(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.parent / f".{path.name}.{uuid4().hex}.tmp"
    try:
        temp_path.write_text(text, encoding="utf-8")
        if path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
