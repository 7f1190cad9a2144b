"""Read file contents as of a git revision."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger("impactbot.github")

_NOT_IN_REVISION = ("exists on disk, but not in", "does not exist in")
_MAX_OUTPUT = 10 * 1024 * 1024


def get_file_content(revision: str | None, file_path: str, cwd: Path | None = None) -> str | None:
    """Return ``file_path`` at ``revision`` via ``git show``, or None if absent.

    A file missing from the revision is logged at info level; every other
    failure is logged as a read error. Never raises.
    """
    if not revision or not file_path:
        return None
    try:
        result = subprocess.run(
            ["git", "show", f"{revision}:{file_path}"],
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=30,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        logger.error(f"Error reading {file_path} at {revision}: {e}")
        return None

    if result.returncode != 0:
        stderr = result.stderr.strip()
        if any(marker in stderr for marker in _NOT_IN_REVISION):
            logger.info(f"File not found in {revision}: {file_path}")
        else:
            logger.error(f"Error reading {file_path} at {revision}: {stderr}")
        return None

    if len(result.stdout) > _MAX_OUTPUT:
        logger.error(f"Error reading {file_path} at {revision}: file exceeds {_MAX_OUTPUT} bytes")
        return None
    return result.stdout
