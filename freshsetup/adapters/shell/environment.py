"""
Environment adapter — adjust variables and PATH of this process.

Only the running process (and the children it spawns afterwards) is
affected; the user's login shell picks up the change once the rc files
have been edited and a new terminal is opened.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


def clean_path(path_value: str, patterns: list[str]) -> tuple[str, list[str]]:
    """Drop PATH entries containing any of ``patterns``.

    Returns:
        (new PATH value, removed entries)
    """
    kept: list[str] = []
    removed: list[str] = []
    for entry in path_value.split(os.pathsep):
        if not entry:
            continue
        if any(p in entry for p in patterns):
            removed.append(entry)
        else:
            kept.append(entry)
    return os.pathsep.join(kept), removed


def prepend_path(path_value: str, entries: list[str]) -> tuple[str, list[str]]:
    """Put ``entries`` at the front of PATH, skipping ones already there."""
    current = [e for e in path_value.split(os.pathsep) if e]
    added = [e for e in entries if e not in current]
    return os.pathsep.join([*added, *current]), added


class EnvironmentAdapter(Adapter):
    """Unset variables and edit PATH in the process environment.

    Action params:
        unset (list[str]): Variable names to remove.
        path_patterns (list[str]): Substrings; matching PATH entries are
            dropped.
        prepend (list[str]): Directories to put at the front of PATH.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    @property
    def name(self) -> str:
        return "environment"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not any(context.params.get(k) for k in ("unset", "path_patterns", "prepend")):
            return False, "Nothing to do: give 'unset', 'path_patterns' and/or 'prepend'"
        return True, ""

    def render(self, context: ExecutionContext) -> str:
        parts = []
        names = context.params.get("unset") or []
        if names:
            parts.append("unset " + " ".join(names))
        patterns = context.params.get("path_patterns") or []
        if patterns:
            parts.append("remove PATH entries matching " + ", ".join(patterns))
        prepend = context.params.get("prepend") or []
        if prepend:
            parts.append(f'export PATH="{os.pathsep.join(prepend)}{os.pathsep}$PATH"')
        return "; ".join(parts)

    def execute(self, context: ExecutionContext) -> Receipt:
        unset: list[str] = []
        for var in context.params.get("unset") or []:
            if self._environ.pop(var, None) is not None:
                unset.append(var)

        path = self._environ.get("PATH", "")
        removed: list[str] = []
        patterns = context.params.get("path_patterns") or []
        if patterns:
            path, removed = clean_path(path, patterns)

        added: list[str] = []
        prepend = context.params.get("prepend") or []
        if prepend:
            path, added = prepend_path(path, prepend)

        if removed or added:
            self._environ["PATH"] = path

        logger.debug("Environment update: unset=%s removed=%s added=%s", unset, removed, added)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=(
                f"Unset {len(unset)} variable(s), removed {len(removed)} "
                f"and added {len(added)} PATH entr(ies)"
            ),
            metadata={
                "unset": unset,
                "path_removed": removed,
                "path_added": added,
                "return_code": 0,
            },
        )
