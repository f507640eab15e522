"""Required external tool checks."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional

from common.exceptions import MissingToolError

logger = logging.getLogger(__name__)

TOOL_HINTS = {
    "docker": "install Docker and join the swarm",
    "kubectl": "install kubectl and configure cluster access",
}


def find_tool(tool: str) -> Optional[str]:
    """Resolve a tool name or path to an executable, or None.

    Values containing a path separator are checked as paths; bare names are
    looked up on PATH.
    """
    if os.sep in tool or (os.altsep and os.altsep in tool):
        path = Path(tool).expanduser()
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
        return None
    return shutil.which(tool)


def require_tools(tools: Iterable[str], hints: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Check every tool is available; raise MissingToolError for the first one that is not."""
    hints = {**TOOL_HINTS, **(hints or {})}
    resolved = {}
    for tool in tools:
        location = find_tool(tool)
        if location is None:
            logger.error(f"[prechecks] Missing command: {tool}")
            raise MissingToolError(tool, hints.get(tool, ""))
        logger.debug(f"[prechecks] Found {tool} at {location}")
        resolved[tool] = location
    return resolved
