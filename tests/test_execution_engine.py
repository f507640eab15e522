"""Tests for the end-to-end execution engine."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from common.exceptions import LivenessTimeoutError, MissingToolError
from common.models.experiment import ExperimentConfig, LivenessConfig, LoadParams, WarmupConfig, WorkloadSpec
from common.models.placement import PlacementMap
from harness.config import Settings
from harness.core.execution_engine import ExecutionEngine

from conftest import read_wrk_calls


@pytest.fixture
def experiment(temp_dir):
    (temp_dir / "c.lua").write_text("-- compose\n")
    (temp_dir / "r.lua").write_text("-- read\n")
    return ExperimentConfig(
        name="test",
        load=LoadParams(threads=2, connections=2, duration="1s", rate=50),
        runs_per_workload=2,
        warmup=WarmupConfig(duration="1s"),
        liveness=LivenessConfig(enabled=True),
        run_root="runs",
        output_path="results/out.json",
        workloads=[
            WorkloadSpec(label="compose-post", url="http://localhost:8080/wrk2-api/post/compose", script="c.lua"),
            WorkloadSpec(label="read-home-timelines", url="http://localhost:8080/wrk2-api/home-timeline/read", script="r.lua"),
        ],
    )


@pytest.fixture
def placement_source():
    source = MagicMock()
    source.name = "swarm"
    source.snapshot = AsyncMock(return_value=PlacementMap(nodes={"node0": ["nginx-web-server"], "node1": []}))
    return source


@pytest.fixture
def liveness_probe():
    probe = MagicMock()
    probe.wait_until_ready = AsyncMock(return_value=0.0)
    return probe


@pytest.mark.asyncio
class TestExecutionEngine:
    """Tests for ExecutionEngine."""

    @pytest.fixture
    def engine_factory(self, temp_dir, experiment, placement_source, liveness_probe, fake_wrk):
        def _make(**kwargs):
            settings = Settings(data_path=temp_dir, wrk_binary=str(fake_wrk()))
            return ExecutionEngine(
                kwargs.get("experiment", experiment),
                settings=settings,
                placement_source=placement_source,
                liveness_probe=liveness_probe,
            )
        return _make

    async def test_full_run(self, engine_factory, temp_dir, placement_source, liveness_probe):
        """Test a complete execution writes the report."""
        engine = engine_factory()

        with patch("harness.core.execution_engine.require_tools") as require_tools:
            report = await engine.run()

        require_tools.assert_called_once()
        liveness_probe.wait_until_ready.assert_awaited_once()
        placement_source.snapshot.assert_awaited_once()

        output = temp_dir / "results" / "out.json"
        data = json.loads(output.read_text())
        assert list(data) == ["placements", "compose-post", "read-home-timelines"]
        assert data["placements"] == {"node0": ["nginx-web-server"], "node1": []}
        assert len(data["compose-post"]) == 2
        assert data["compose-post"][0]["p50"] == "12.34ms"
        assert data["compose-post"][0]["e2e_vals"] == [100, 200, 101, 201]
        assert data["compose-post"][0]["e2e_median"] == "150.500"
        assert report.workloads["compose-post"].is_reliable

        # one warm-up plus two measured runs per workload
        calls = read_wrk_calls(temp_dir)
        assert len(calls) == 6
        assert ["-P" in c for c in calls] == [False, True, True, False, True, True]
        assert calls[1][calls[1].index("-s") + 1] == str(temp_dir / "c.lua")
        assert len(list((temp_dir / "runs").iterdir())) == 4

    async def test_missing_tool(self, engine_factory, temp_dir, liveness_probe):
        """Test a missing tool aborts before anything runs."""
        engine = engine_factory()

        with patch(
            "harness.core.execution_engine.require_tools",
            side_effect=MissingToolError("docker"),
        ):
            with pytest.raises(MissingToolError):
                await engine.run()

        liveness_probe.wait_until_ready.assert_not_awaited()
        assert not (temp_dir / "results" / "out.json").exists()

    async def test_liveness_timeout(self, engine_factory, temp_dir, liveness_probe, placement_source):
        """Test a liveness timeout writes no report."""
        liveness_probe.wait_until_ready = AsyncMock(
            side_effect=LivenessTimeoutError("http://localhost:8080/wrk2-api/user/register", 180)
        )
        engine = engine_factory()

        with patch("harness.core.execution_engine.require_tools"):
            with pytest.raises(LivenessTimeoutError):
                await engine.run()

        assert read_wrk_calls(temp_dir) == []
        placement_source.snapshot.assert_not_awaited()
        assert not (temp_dir / "results" / "out.json").exists()

    async def test_liveness_disabled(self, engine_factory, experiment, liveness_probe):
        """Test the probe can be skipped."""
        experiment.liveness.enabled = False
        experiment.runs_per_workload = 1
        engine = engine_factory()

        with patch("harness.core.execution_engine.require_tools"):
            await engine.run()

        liveness_probe.wait_until_ready.assert_not_awaited()

    async def test_clean_run_dirs(self, engine_factory, experiment, temp_dir):
        """Test previous run directories are removed on start."""
        stale = temp_dir / "runs" / "e2e-old-1-a1-x"
        stale.mkdir(parents=True)
        experiment.runs_per_workload = 1
        engine = engine_factory()

        with patch("harness.core.execution_engine.require_tools"):
            await engine.run()

        assert not stale.exists()

    async def test_keep_run_dirs(self, engine_factory, experiment, temp_dir):
        """Test previous run directories survive when cleaning is off."""
        stale = temp_dir / "runs" / "e2e-old-1-a1-x"
        stale.mkdir(parents=True)
        experiment.runs_per_workload = 1
        experiment.clean_run_dirs_on_start = False
        engine = engine_factory()

        with patch("harness.core.execution_engine.require_tools"):
            await engine.run()

        assert stale.exists()

    async def test_required_tools(self, engine_factory):
        """Test the tool list follows the orchestrator."""
        engine = engine_factory()

        assert engine.required_tools()[1] == "docker"

    async def test_relative_binary_resolved_against_data_path(self, experiment, temp_dir):
        """Test the checked and executed binary is the same absolute path."""
        engine = ExecutionEngine(
            experiment,
            settings=Settings(data_path=temp_dir, wrk_binary="bin/wrk"),
            placement_source=MagicMock(),
            liveness_probe=MagicMock(),
        )

        assert engine.required_tools()[0] == str(temp_dir / "bin" / "wrk")
        assert engine.runner.build_command(experiment.workloads[0])[0] == str(temp_dir / "bin" / "wrk")
