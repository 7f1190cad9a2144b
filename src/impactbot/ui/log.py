"""Logging setup: workflow commands inside GitHub Actions, Rich elsewhere."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from rich.logging import RichHandler


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GitHubActionsHandler(logging.StreamHandler):
    """Render records as Actions workflow commands so errors become annotations."""

    COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape_data(message)}"


def in_github_actions(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS", "").lower() == "true"


def configure_logging(verbose: bool = False, environ: Mapping[str, str] | None = None) -> None:
    """Install a single handler on the ``impactbot`` logger."""
    logger = logging.getLogger("impactbot")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    if in_github_actions(environ):
        handler: logging.Handler = GitHubActionsHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = RichHandler(show_path=False, markup=False, rich_tracebacks=True)
    logger.addHandler(handler)
