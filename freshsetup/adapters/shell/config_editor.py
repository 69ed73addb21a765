"""
Config editor adapter — shell-config text surgery as an action.

Wraps ``ShellConfigEditor`` so edits to ``.zshrc`` and friends are
logged, dry-run-safe and reported like every other mutation.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt
from freshsetup.core.services.shell_config import (
    EDIT_OPS,
    ShellConfigEditor,
    describe_edit,
)

logger = logging.getLogger(__name__)


class ConfigEditorAdapter(Adapter):
    """Edit a text config file in place.

    Action params:
        path (str): File to edit.
        edits (list[dict]): Edit descriptors, applied in order. Each has
            an ``op`` (see ``EDIT_OPS``) plus that op's fields.
        create (bool): Create the file when missing (default: False).
            A missing file without ``create`` is reported as skipped.
    """

    def __init__(self, editor: ShellConfigEditor | None = None):
        self._editor = editor or ShellConfigEditor()

    @property
    def name(self) -> str:
        return "config"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.params.get("path"):
            return False, "Missing required param: 'path'"
        edits = context.params.get("edits")
        if not edits or not isinstance(edits, list):
            return False, "Missing required param: 'edits'"
        for edit in edits:
            if edit.get("op") not in EDIT_OPS:
                return False, f"Unknown edit op {edit.get('op')!r}. Valid: {', '.join(EDIT_OPS)}"
        return True, ""

    def render(self, context: ExecutionContext) -> str:
        edits = "; ".join(describe_edit(e) for e in context.params.get("edits", []))
        return f"edit {context.params.get('path')}: {edits}"

    def execute(self, context: ExecutionContext) -> Receipt:
        path = Path(context.params["path"]).expanduser()
        try:
            result = self._editor.edit(
                path,
                context.params["edits"],
                create=context.params.get("create", False),
            )
        except (OSError, ValueError, KeyError, re.error) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Could not edit {path}: {e}",
                metadata={"path": str(path), "return_code": 1},
            )

        if not result.existed and not context.params.get("create", False):
            return Receipt.skip(
                adapter=self.name,
                action_id=context.action.id,
                reason=f"{path} not found",
                metadata={"path": str(path)},
            )

        output = (
            f"Updated {path}: " + "; ".join(result.details)
            if result.changed
            else f"No changes needed in {path}"
        )
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=output,
            metadata={
                "path": str(path),
                "changes": result.changes,
                "backup": str(result.backup) if result.backup else None,
                "return_code": 0,
            },
        )
