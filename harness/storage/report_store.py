"""File-based storage for the consolidated report."""

from __future__ import annotations

import logging
from pathlib import Path

from common.models.report import Report
from common.utils import ensure_dir

logger = logging.getLogger(__name__)


class ReportStore:
    """Write and read the JSON report document."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def save(self, report: Report) -> Path:
        """Write the report once, replacing any previous file."""
        ensure_dir(self.path.parent)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(report.dumps())
        logger.info(f"[report] Results written to {self.path}")
        return self.path

    def load(self) -> Report:
        with open(self.path, encoding="utf-8") as f:
            return Report.loads(f.read())

    def exists(self) -> bool:
        return self.path.is_file()
