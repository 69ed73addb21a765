"""
Download adapter — fetch a URL into a local file.

Writes to a temporary sibling first and renames on completion, so an
interrupted download never leaves a truncated file at the destination.
A minimum-size sanity check catches HTML error pages served with 200.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shlex
import urllib.error
import urllib.request
from pathlib import Path
from uuid import uuid4

from freshsetup import __version__
from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


def _fmt_size(n: int) -> str:
    """Human-readable byte count."""
    size = float(n)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{n} B"


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex``."""
    algo, expected_hash = expected.split(":", 1)
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash


class DownloadAdapter(Adapter):
    """HTTP(S) download with size sanity check.

    Action params:
        url (str): Source URL (redirects are followed).
        dest (str): Destination file path; parent dirs are created.
        min_size_bytes (int): Smaller results are kept but flagged with
            a warning in ``metadata["warnings"]``.
        checksum (str): Optional ``algo:hex`` digest; a mismatch fails.
        timeout (int): Socket timeout in seconds (default: 60).
    """

    @property
    def name(self) -> str:
        return "download"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        url = context.params.get("url", "")
        if not url:
            return False, "Missing required param: 'url'"
        if not url.startswith(("https://", "http://")):
            return False, f"Unsupported URL scheme: {url}"
        if not context.params.get("dest"):
            return False, "Missing required param: 'dest'"
        return True, ""

    def render(self, context: ExecutionContext) -> str:
        url = shlex.quote(context.params.get("url", ""))
        dest = shlex.quote(str(context.params.get("dest", "")))
        return f"curl -fsSL -o {dest} {url}"

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.params["url"]
        dest = Path(context.params["dest"]).expanduser()
        timeout = context.params.get("timeout", 60)
        min_size = int(context.params.get("min_size_bytes", 0))
        checksum = context.params.get("checksum")

        temp_path = dest.parent / f".{dest.name}.{uuid4().hex}.part"
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            req = urllib.request.Request(url, headers={"User-Agent": f"fresh-setup/{__version__}"})
            with urllib.request.urlopen(req, timeout=timeout) as resp, open(temp_path, "wb") as f:
                while True:
                    chunk = resp.read(_CHUNK)
                    if not chunk:
                        break
                    f.write(chunk)

            if checksum and not _verify_checksum(temp_path, checksum):
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Checksum mismatch for {url}",
                    metadata={"url": url, "dest": str(dest), "return_code": 1},
                )

            os.replace(temp_path, dest)
        except urllib.error.HTTPError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"HTTP {e.code} fetching {url}",
                metadata={"url": url, "return_code": e.code},
            )
        except (urllib.error.URLError, OSError, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Download failed: {e}",
                metadata={"url": url, "return_code": 1},
            )
        finally:
            if temp_path.exists():
                temp_path.unlink()

        size = dest.stat().st_size
        warnings: list[str] = []
        if min_size and size < min_size:
            warnings.append(
                f"Downloaded file {dest.name} is only {_fmt_size(size)} "
                f"(expected at least {_fmt_size(min_size)}); it may be incomplete"
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Downloaded {_fmt_size(size)} to {dest}",
            metadata={
                "url": url,
                "dest": str(dest),
                "size_bytes": size,
                "warnings": warnings,
                "return_code": 0,
            },
        )
