"""Single load-generator invocations in isolated run directories."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from common.models.experiment import LoadParams, WorkloadSpec
from common.models.run import RunArtifact, WorkerSamples
from common.utils import ensure_dir, sanitize_filename
from harness.core.stats import parse_sample_lines

logger = logging.getLogger(__name__)

SUMMARY_FILE = "output.txt"
STDERR_FILE = "stderr.txt"

_WORKER_FILE = re.compile(r"^(\d+)\.txt$")


def load_artifact(
    run_dir: Path,
    exit_code: int = 0,
    finished_at: Optional[datetime] = None,
) -> RunArtifact:
    """Read a run directory into a RunArtifact.

    Worker files are named ``<index>.txt`` and ordered by numeric index.
    """
    run_dir = Path(run_dir)
    summary_path = run_dir / SUMMARY_FILE
    summary_text = ""
    if summary_path.exists():
        summary_text = summary_path.read_text(errors="replace")

    workers = []
    entries = run_dir.iterdir() if run_dir.is_dir() else []
    for path in entries:
        match = _WORKER_FILE.match(path.name)
        if not match or not path.is_file():
            continue
        with open(path, errors="replace") as f:
            samples = parse_sample_lines(f)
        workers.append(WorkerSamples(worker=int(match.group(1)), path=path, samples=samples))
    workers.sort(key=lambda w: w.worker)

    if finished_at is None:
        finished_at = datetime.fromtimestamp(
            summary_path.stat().st_mtime if summary_path.exists() else run_dir.stat().st_mtime,
            tz=timezone.utc,
        )

    return RunArtifact(
        run_dir=run_dir,
        summary_text=summary_text,
        workers=workers,
        exit_code=exit_code,
        finished_at=finished_at,
    )


class WorkloadRunner:
    """Run the load generator once per call, each time in a new directory.

    The tool runs with the run directory as its working directory, so a
    binary given as a path and every workload script are made absolute
    against ``base_dir`` (default: the current directory) up front.
    """

    def __init__(
        self,
        wrk_binary: str,
        load: LoadParams,
        run_root: Path,
        base_dir: Optional[Path] = None,
    ):
        self.base_dir = Path(base_dir or Path.cwd()).expanduser().absolute()
        self.wrk_binary = self.resolve_binary(wrk_binary)
        self.load = load
        self.run_root = Path(run_root)

    def absolute(self, path: str | Path) -> Path:
        path = Path(path).expanduser()
        return path if path.is_absolute() else self.base_dir / path

    def resolve_binary(self, binary: str) -> str:
        """Make a path-like binary absolute; bare names stay PATH lookups."""
        if os.sep in binary or (os.altsep and os.altsep in binary):
            return str(self.absolute(binary))
        return binary

    def build_command(
        self,
        workload: WorkloadSpec,
        duration: Optional[str] = None,
        rate: Optional[int] = None,
        record_samples: bool = True,
    ) -> list[str]:
        """Build the wrk2 command line."""
        cmd = [
            self.wrk_binary,
            "-D", self.load.distribution,
            "-t", str(self.load.threads),
            "-c", str(self.load.connections),
            "-d", duration or self.load.duration,
            "-L",
        ]
        if record_samples:
            cmd.append("-P")
        cmd.extend([
            "-s", str(self.absolute(workload.script)),
            workload.url,
            "-R", str(rate or self.load.rate),
        ])
        return cmd

    def new_run_dir(self, prefix: str) -> Path:
        """Create a uniquely named directory under the run root."""
        ensure_dir(self.run_root)
        return Path(tempfile.mkdtemp(prefix=f"{sanitize_filename(prefix)}-", dir=self.run_root))

    async def run(self, workload: WorkloadSpec, repetition: int, attempt: int) -> RunArtifact:
        """Run one measured invocation and collect its artifact.

        A non-zero exit or a failure to start the tool is logged and kept
        in the artifact's exit code; the health classifier decides what it
        means.
        """
        run_dir = self.new_run_dir(f"e2e-{workload.label}-{repetition}-a{attempt}")
        cmd = self.build_command(workload)

        logger.info(f"[{workload.label}] Running wrk2 in {run_dir.name}: {' '.join(cmd)}")
        exit_code = await self._execute(cmd, run_dir)
        finished_at = datetime.now(timezone.utc)

        if exit_code != 0:
            logger.warning(f"[{workload.label}] wrk2 exited with status {exit_code} in {run_dir.name}")

        return load_artifact(run_dir, exit_code=exit_code, finished_at=finished_at)

    async def warm_up(self, workload: WorkloadSpec, duration: str, rate: int) -> None:
        """Untracked warm-up run: no samples, output discarded, errors ignored."""
        run_dir = self.new_run_dir(f"warmup-{workload.label}")
        cmd = self.build_command(workload, duration=duration, rate=rate, record_samples=False)

        logger.info(f"[{workload.label}] Warming up endpoint ({duration} at {rate} req/s)")
        try:
            exit_code = await self._execute(cmd, run_dir)
            if exit_code != 0:
                logger.debug(f"[{workload.label}] Warm-up exited with status {exit_code} (ignored)")
        finally:
            shutil.rmtree(run_dir, ignore_errors=True)

    async def _execute(self, cmd: list[str], run_dir: Path) -> int:
        """Run a command in ``run_dir`` with stdout/stderr captured to files."""
        with open(run_dir / SUMMARY_FILE, "wb") as stdout, open(run_dir / STDERR_FILE, "wb") as stderr:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    cwd=str(run_dir),
                    stdout=stdout,
                    stderr=stderr,
                )
            except OSError as e:
                logger.error(f"Failed to start {cmd[0]}: {e}")
                stderr.write(str(e).encode())
                return -1

            await proc.wait()
            return proc.returncode if proc.returncode is not None else -1
