"""Unit tests for run health classification."""

from harness.core.health import classify_run

from conftest import SUMMARY_TEXT, make_artifact


class TestClassifyRun:
    """Tests for classify_run."""

    def test_healthy_run(self, healthy_artifact):
        """Test a clean run with enough worker files."""
        verdict = classify_run(healthy_artifact, expected_threads=2)

        assert verdict.healthy is True
        assert verdict.non_2xx == 0
        assert verdict.worker_files == 2
        assert verdict.has_numeric_samples is True
        assert verdict.reasons == []

    def test_absent_non_2xx_line_is_not_failure(self, temp_dir):
        """Test that a summary without the counter line is healthy."""
        assert "Non-2xx" not in SUMMARY_TEXT
        assert classify_run(make_artifact(temp_dir), expected_threads=2).healthy

    def test_non_2xx_responses(self, temp_dir):
        """Test that any non-2xx response makes the run unhealthy."""
        artifact = make_artifact(temp_dir, summary_text=SUMMARY_TEXT + "  Non-2xx or 3xx responses: 3\n")
        verdict = classify_run(artifact, expected_threads=2)

        assert verdict.healthy is False
        assert verdict.non_2xx == 3
        assert "3 non-2xx/3xx responses" in verdict.reasons

    def test_zero_non_2xx_line(self, temp_dir):
        """Test an explicit zero count."""
        artifact = make_artifact(temp_dir, summary_text=SUMMARY_TEXT + "Non-2xx or 3xx responses: 0\n")
        assert classify_run(artifact, expected_threads=2).healthy

    def test_unparseable_non_2xx(self, temp_dir):
        """Test that an unreadable counter is unhealthy."""
        artifact = make_artifact(temp_dir, summary_text="Non-2xx or 3xx responses: ?\n")
        verdict = classify_run(artifact, expected_threads=2)

        assert verdict.healthy is False
        assert verdict.non_2xx == -1

    def test_zero_worker_files(self, unhealthy_artifact):
        """Test a run that produced no worker files."""
        verdict = classify_run(unhealthy_artifact, expected_threads=4)

        assert verdict.healthy is False
        assert verdict.worker_files == 0
        assert verdict.has_numeric_samples is False
        assert len(verdict.reasons) == 2

    def test_too_few_worker_files(self, temp_dir):
        """Test fewer files than threads."""
        verdict = classify_run(make_artifact(temp_dir, samples={0: [1]}), expected_threads=2)

        assert verdict.healthy is False
        assert verdict.reasons == ["1 worker files, expected 2"]

    def test_files_without_numbers(self, temp_dir):
        """Test worker files that hold no numeric line."""
        verdict = classify_run(make_artifact(temp_dir, samples={0: [], 1: []}), expected_threads=2)

        assert verdict.healthy is False
        assert verdict.reasons == ["no numeric latency samples"]

    def test_describe(self, temp_dir):
        """Test the diagnostic line."""
        verdict = classify_run(make_artifact(temp_dir, samples={0: [1]}, exit_code=1), expected_threads=4)

        assert verdict.describe() == "Non-2xx=0, threads=1/4, numbers=1, exit=1"
