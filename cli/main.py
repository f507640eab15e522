"""Social network benchmark CLI - Command line interface."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from common.exceptions import BenchmarkError, ConfigError
from common.models.experiment import LoadParams
from harness.config import get_settings, load_experiment
from harness.core.execution_engine import ExecutionEngine
from harness.core.health import classify_run
from harness.core.stats import StatsExtractor
from harness.core.workload_runner import load_artifact
from harness.placement.factory import create_placement_source

logger = logging.getLogger("snet-bench")


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging from settings."""
    settings = get_settings()
    if verbose:
        settings.verbose = True
    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level, logging.INFO),
        format=settings.log_format,
    )


def get_experiment(args, overrides: dict = None):
    """Load the experiment named on the command line (or the default)."""
    path = args.config or get_settings().experiment_file
    return load_experiment(path, overrides)


def cmd_run(args):
    """Run every workload and write the report."""
    overrides = {}
    if args.runs is not None:
        overrides["runs_per_workload"] = args.runs
    if args.output is not None:
        overrides["output_path"] = str(args.output)

    experiment = get_experiment(args, overrides)
    engine = ExecutionEngine(experiment)
    report = asyncio.run(engine.run())

    print(f"\n{'Workload':<25} {'Runs':<6} {'Attempts':<10} {'Unhealthy':<10}")
    print("-" * 55)
    for label, series in report.workloads.items():
        unhealthy = ", ".join(str(i) for i in series.unhealthy_runs) or "-"
        print(f"{label:<25} {len(series.runs):<6} {sum(series.attempts):<10} {unhealthy:<10}")
    print(f"\nResults: {engine.output_path}")
    return 0


def cmd_placements(args):
    """Print the current service placement map."""
    experiment = get_experiment(args)
    source = create_placement_source(experiment.orchestrator, use_sudo=get_settings().use_sudo)
    placements = asyncio.run(source.snapshot())
    print(json.dumps(placements.to_json(), indent=4))
    return 0


def cmd_parse_run(args):
    """Re-extract a result from an existing run directory."""
    run_dir = Path(args.run_dir)
    if not run_dir.is_dir():
        print(f"Error: not a directory: {run_dir}")
        return 1

    try:
        load = LoadParams(
            threads=args.threads,
            connections=args.connections,
            duration=args.duration,
            rate=args.rate,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid load parameters: {e}") from e
    artifact = load_artifact(run_dir)
    verdict = classify_run(artifact, load.threads)
    result = StatsExtractor(load).extract(artifact)

    print(json.dumps(result.model_dump(mode="json"), indent=4))
    print(f"Health: {'healthy' if verdict.healthy else 'UNHEALTHY'} ({verdict.describe()})")
    for reason in verdict.reasons:
        print(f"  - {reason}")
    return 0


def cmd_workloads(args):
    """List configured workloads."""
    experiment = get_experiment(args)

    print(f"{'Label':<25} {'URL':<50} {'Script':<40}")
    print("-" * 115)
    for w in experiment.workloads:
        print(f"{w.label:<25} {w.url:<50} {str(w.script):<40}")
    return 0


def cmd_show_config(args):
    """Print the effective experiment configuration."""
    experiment = get_experiment(args)
    print(yaml.safe_dump(experiment.model_dump(mode="json"), default_flow_style=False, sort_keys=False), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snet-bench",
        description="Social network benchmark harness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_config(p):
        p.add_argument("-c", "--config", type=Path, help="Experiment YAML file")

    # run
    run_parser = subparsers.add_parser("run", help="Run all workloads and write the report")
    add_config(run_parser)
    run_parser.add_argument("-o", "--output", type=Path, help="Report path")
    run_parser.add_argument("-n", "--runs", type=int, help="Repetitions per workload")
    run_parser.set_defaults(func=cmd_run)

    # placements
    placements_parser = subparsers.add_parser("placements", help="Show service placements")
    add_config(placements_parser)
    placements_parser.set_defaults(func=cmd_placements)

    # parse-run
    parse_parser = subparsers.add_parser("parse-run", help="Extract results from a run directory")
    parse_parser.add_argument("run_dir", help="Run directory")
    parse_parser.add_argument("-t", "--threads", type=int, default=4, help="Expected worker threads")
    parse_parser.add_argument("--connections", type=int, default=64, help="Connections used")
    parse_parser.add_argument("-d", "--duration", default="30s", help="Duration used")
    parse_parser.add_argument("-R", "--rate", type=int, default=1000, help="Target rate used")
    parse_parser.set_defaults(func=cmd_parse_run)

    # workloads
    workloads_parser = subparsers.add_parser("workloads", help="List workloads")
    add_config(workloads_parser)
    workloads_parser.set_defaults(func=cmd_workloads)

    # show-config
    config_parser = subparsers.add_parser("show-config", help="Print effective configuration")
    add_config(config_parser)
    config_parser.set_defaults(func=cmd_show_config)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    try:
        return args.func(args)
    except BenchmarkError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
