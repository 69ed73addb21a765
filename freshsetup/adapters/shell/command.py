"""
Shell command adapter — execute package-manager and installer commands.

This is the most fundamental adapter: it runs child processes and
captures their output. Homebrew, git, conda/mamba, pip and the
installer scripts all go through here.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep receipts small; installers can be very chatty
_OUTPUT_TAIL = 2000


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        command (list[str] | str): The command to execute. A string is
            run through ``/bin/sh`` (pipes, ``$(...)``); a list is run
            directly.
        timeout (int): Timeout in seconds (default: 1800).
        cwd (str): Working directory (default: inherited).
        env (dict): Extra environment variables.
        sudo (bool): Prefix with ``sudo`` unless already root.
        capture (bool): Capture stdout/stderr (default: True). Set False
            for installers that must talk to the terminal.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        # Shell is always available on Unix systems
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"
        if not isinstance(command, (str, list)):
            return False, "'command' must be a string or a list of strings"

        cwd = context.params.get("cwd")
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def render(self, context: ExecutionContext) -> str:
        command = self._argv_or_string(context)
        text = command if isinstance(command, str) else shlex.join(command)
        env = context.params.get("env") or {}
        if env:
            prefix = " ".join(f"{k}={shlex.quote(str(v))}" for k, v in env.items())
            text = f"{prefix} {text}"
        cwd = context.params.get("cwd")
        if cwd:
            text = f"cd {shlex.quote(str(cwd))} && {text}"
        return text

    def execute(self, context: ExecutionContext) -> Receipt:
        command = self._argv_or_string(context)
        use_shell = isinstance(command, str)
        timeout = context.params.get("timeout", 1800)
        cwd = context.params.get("cwd")
        capture = context.params.get("capture", True)
        rendered = self.render(context)

        env = os.environ.copy()
        for key, value in (context.params.get("env") or {}).items():
            env[key] = os.path.expandvars(str(value))

        logger.debug("Executing: %s (cwd=%s, attempt=%d)", rendered, cwd, context.attempt)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                shell=use_shell,
                cwd=cwd,
                env=env,
                capture_output=capture,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": rendered, "timeout": timeout},
            )
        except OSError as e:
            # Executable missing, permission denied, bad cwd
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": rendered, "return_code": 127},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = (result.stdout or "").strip()[-_OUTPUT_TAIL:]
        stderr = (result.stderr or "").strip()[-_OUTPUT_TAIL:]

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=output,
                duration_ms=elapsed_ms,
                metadata={
                    "command": rendered,
                    "return_code": result.returncode,
                    "stderr": stderr,
                },
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={
                "command": rendered,
                "return_code": result.returncode,
                "stdout": output,
            },
        )

    @staticmethod
    def _argv_or_string(context: ExecutionContext) -> list[str] | str:
        command = context.params["command"]
        if not context.params.get("sudo") or os.geteuid() == 0:
            return command
        if isinstance(command, str):
            return f"sudo {command}"
        return ["sudo", *command]
