"""
Confirmation gate — a single yes/no question before irreversible steps.

Only ``y``/``yes`` (any case) is a yes. Anything else, including an
empty answer or end-of-input, is a decline. The gate never re-asks.
With ``force`` it answers yes without reading anything.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

logger = logging.getLogger(__name__)

_AFFIRMATIVE = frozenset({"y", "yes"})


def _read_line(prompt: str) -> str:
    return click.prompt(prompt, default="", show_default=False, prompt_suffix=" ")


class ConfirmationGate:
    def __init__(self, force: bool = False, read: Callable[[str], str] = _read_line):
        self.force = force
        self._read = read
        self.asked: list[str] = []

    def confirm(self, prompt: str) -> bool:
        if self.force:
            return True
        self.asked.append(prompt)
        try:
            answer = self._read(f"{prompt} [y/N]")
        except (click.Abort, EOFError, KeyboardInterrupt):
            logger.debug("No answer for %r, treating as decline", prompt)
            return False
        return answer.strip().lower() in _AFFIRMATIVE
