"""Pytest configuration and shared fixtures."""

import json
import shutil
import stat
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Optional

import pytest
import yaml

from common.models.experiment import LoadParams, WorkloadSpec
from common.models.run import RunArtifact, WorkerSamples
from harness.placement.commands import CommandResult


SUMMARY_TEXT = """Running 30s test @ http://localhost:8080/wrk2-api/post/compose
  4 threads and 64 connections
  Thread calibration: mean lat.: 12.345ms, rate sampling interval: 10ms

  Latency Distribution (HdrHistogram - Recorded Latency)
 50.000%   12.34ms
 75.000%   15.10ms
 90.000%   20.50ms
 99.000%   45.67ms
 99.900%   80.12ms
 99.990%   95.00ms
100.000%  101.00ms

  29945 requests in 30.00s, 6.12MB read
Requests/sec:    998.2
Transfer/sec:    208.81KB
"""

FINISHED_AT = datetime(2024, 5, 1, 12, 30, 45, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def load_params() -> LoadParams:
    """Small load configuration."""
    return LoadParams(threads=2, connections=4, duration="5s", rate=200)


@pytest.fixture
def workload(temp_dir: Path) -> WorkloadSpec:
    """Sample workload with an existing script file."""
    (temp_dir / "compose-post.lua").write_text("-- request generator\n")
    return WorkloadSpec(
        label="compose-post",
        url="http://localhost:8080/wrk2-api/post/compose",
        script=temp_dir / "compose-post.lua",
    )


def make_artifact(
    run_dir: Path,
    summary_text: str = SUMMARY_TEXT,
    samples: Optional[dict[int, list[int]]] = None,
    exit_code: int = 0,
    finished_at: datetime = FINISHED_AT,
) -> RunArtifact:
    """Build a RunArtifact without touching the filesystem."""
    samples = samples if samples is not None else {0: [100, 200], 1: [300]}
    return RunArtifact(
        run_dir=run_dir,
        summary_text=summary_text,
        workers=[
            WorkerSamples(worker=index, path=run_dir / f"{index}.txt", samples=values)
            for index, values in sorted(samples.items())
        ],
        exit_code=exit_code,
        finished_at=finished_at,
    )


@pytest.fixture
def healthy_artifact(temp_dir: Path) -> RunArtifact:
    """Artifact of a healthy two-thread run."""
    return make_artifact(temp_dir)


@pytest.fixture
def unhealthy_artifact(temp_dir: Path) -> RunArtifact:
    """Artifact of a run that left no worker files."""
    return make_artifact(temp_dir, samples={})


FAKE_WRK = '''#!{python}
import json
import os
import sys

argv = sys.argv[1:]
with open({log!r}, "a") as log:
    log.write(json.dumps(argv) + "\\n")

script = argv[argv.index("-s") + 1]
if not os.path.exists(script):
    sys.stderr.write(f"script not found: {{script}}\\n")
    sys.exit(1)

threads = int(argv[argv.index("-t") + 1])
if "-P" in argv:
    for index in range({files!r} if {files!r} is not None else threads):
        with open(f"{{index}}.txt", "w") as f:
            f.write("#[Mean = 1.0, StdDeviation = 0.5]\\n")
            f.write(f"{{100 + index}}\\n{{200 + index}}\\n")
sys.stdout.write({summary!r})
sys.stderr.write("fake wrk done\\n")
sys.exit({exit_code!r})
'''


@pytest.fixture
def fake_wrk(temp_dir: Path):
    """Factory writing an executable stand-in for the load generator.

    Every invocation appends its argv (JSON) to ``<temp_dir>/wrk-calls.log``.
    """
    def _make(summary: str = SUMMARY_TEXT, exit_code: int = 0, files: Optional[int] = None) -> Path:
        path = temp_dir / "bin" / "wrk"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(FAKE_WRK.format(
            python=sys.executable,
            log=str(temp_dir / "wrk-calls.log"),
            files=files,
            summary=summary,
            exit_code=exit_code,
        ))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


def read_wrk_calls(temp_dir: Path) -> list[list[str]]:
    log = temp_dir / "wrk-calls.log"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text().splitlines()]


class FakeCommandRunner:
    """Command runner returning canned output keyed by argument prefix."""

    def __init__(self, responses: Optional[dict[tuple, CommandResult]] = None):
        self.responses = responses or {}
        self.calls: list[list[str]] = []

    def add(self, args: list[str], stdout: str = "", exit_code: int = 0, stderr: str = "") -> None:
        self.responses[tuple(args)] = CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    async def run(self, args: list[str]) -> CommandResult:
        self.calls.append(list(args))
        key = tuple(args)
        if key in self.responses:
            return self.responses[key]
        return CommandResult(exit_code=1, stdout="", stderr=f"unexpected command: {' '.join(args)}")


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


def write_yaml(path: Path, data: dict) -> Path:
    """Write an experiment file for a test."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path
