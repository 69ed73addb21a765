"""
Filesystem adapter — file and directory operations.

Provides a safe, receipt-returning interface for the filesystem
mutations workflows perform, so the engine can log, retry and
dry-run them like any other command.
"""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

# operation -> params it needs besides 'path'
_OPERATIONS: dict[str, tuple[str, ...]] = {
    "remove": (),
    "mkdir": (),
    "rmdir_if_empty": (),
    "write_if_missing": ("content",),
    "replace_tree": ("source",),
    "copy_dotfiles": ("source",),
}


class FilesystemAdapter(Adapter):
    """File and directory operations with receipts.

    Action params:
        operation (str): One of the keys of ``_OPERATIONS``.
        path (str): Target path (absolute).
        source (str): Source directory for replace_tree and copy_dotfiles.
        content (str): Content for 'write_if_missing'.
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True  # filesystem is always available

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in _OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"

        if not context.params.get("path"):
            return False, "Missing required param: 'path'"

        for param in _OPERATIONS[operation]:
            if param not in context.params:
                return False, f"Missing required param: '{param}' for {operation} operation"

        return True, ""

    def render(self, context: ExecutionContext) -> str:
        operation = context.params.get("operation", "")
        path = shlex.quote(str(context.params.get("path", "")))
        source = shlex.quote(str(context.params.get("source", "")))

        if operation == "remove":
            return f"rm -rf {path}"
        if operation == "mkdir":
            return f"mkdir -p {path}"
        if operation == "rmdir_if_empty":
            return f"rmdir {path}"
        if operation == "write_if_missing":
            return f"create {path} (if missing)"
        if operation == "replace_tree":
            return f"rm -rf {path} && cp -Rp {source} {path}"
        if operation == "copy_dotfiles":
            return f"cp -p {source}/.[!.]* {path}/"
        return f"filesystem {operation} {path}"

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        target = Path(context.params["path"]).expanduser()

        try:
            if operation == "remove":
                return self._remove(context, target)
            elif operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "rmdir_if_empty":
                return self._rmdir_if_empty(context, target)
            elif operation == "write_if_missing":
                return self._write_if_missing(context, target)
            elif operation == "replace_tree":
                return self._replace_tree(context, target)
            elif operation == "copy_dotfiles":
                return self._copy_dotfiles(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target), "return_code": 1},
            )

    # ── Operations ───────────────────────────────────────────────

    def _ok(self, ctx: ExecutionContext, output: str, target: Path, **extra: object) -> Receipt:
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=output,
            metadata={"path": str(target), "return_code": 0, **extra},
        )

    def _source(self, ctx: ExecutionContext) -> Path:
        return Path(ctx.params["source"]).expanduser()

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if target.is_symlink() or target.is_file():
            target.unlink()
        elif target.is_dir():
            shutil.rmtree(target)
        else:
            return self._ok(ctx, f"Already absent: {target}", target, existed=False)
        return self._ok(ctx, f"Removed: {target}", target, existed=True)

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        target.mkdir(parents=True, exist_ok=True)
        return self._ok(ctx, f"Directory created: {target}", target)

    def _rmdir_if_empty(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if not target.is_dir():
            return self._ok(ctx, f"Already absent: {target}", target, removed=False)
        if any(target.iterdir()):
            return self._ok(ctx, f"Not empty, left in place: {target}", target, removed=False)
        target.rmdir()
        return self._ok(ctx, f"Removed empty directory: {target}", target, removed=True)

    def _write_if_missing(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if target.exists():
            return self._ok(ctx, f"Already exists: {target}", target, written=False)
        content = ctx.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return self._ok(ctx, f"Written {len(content)} bytes to {target}", target, written=True)

    def _replace_tree(self, ctx: ExecutionContext, target: Path) -> Receipt:
        source = self._source(ctx)
        if not source.is_dir():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Not a directory: {source}",
                metadata={"return_code": 1},
            )
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        shutil.copytree(source, target)
        count = sum(1 for p in target.rglob("*") if p.is_file())
        return self._ok(ctx, f"Copied {count} files from {source} to {target}", target, files=count)

    def _copy_dotfiles(self, ctx: ExecutionContext, target: Path) -> Receipt:
        source = self._source(ctx)
        if not source.is_dir():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Not a directory: {source}",
                metadata={"return_code": 1},
            )
        copied: list[str] = []
        for entry in sorted(source.iterdir()):
            if entry.name.startswith(".") and entry.is_file():
                shutil.copy2(entry, target / entry.name)
                copied.append(entry.name)
        if not copied:
            return self._ok(ctx, f"No dotfiles found in {source}", target, copied=[])
        return self._ok(ctx, f"Copied dotfiles: {', '.join(copied)}", target, copied=copied)
