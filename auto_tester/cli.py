"""CLI entry point for the auto tester.

    auto-tester --registry tests.yaml list
    auto-tester --registry tests.yaml run Geography --mode automatic
    auto-tester --registry tests.yaml batch Geography Vectors

Every command prints one JSON document on stdout.
"""

import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import click

from . import log_util
from .config import RunConfiguration, load_config
from .errors import AutoTesterError
from .registry import (
    RunMode,
    TestRegistry,
    load_registry_yaml,
    parse_registry_data,
    validate_registry_data,
)
from .reporting import ConsoleStatusDisplay, JsonReporter, reset_results_dir
from .runner import BatchRunner, RunController

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass
class CliState:
    """Objects shared by all subcommands."""
    registry: TestRegistry
    config: RunConfiguration
    pretty: bool = False


def output(payload: dict[str, Any], pretty: bool = False) -> None:
    """Print a JSON document on stdout."""
    click.echo(json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False, default=str))


def output_error(message: str, command: str, pretty: bool = False, **extra: Any) -> None:
    """Output an error document."""
    output(
        {
            "success": False,
            "command": command,
            "data": extra or None,
            "message": message,
        },
        pretty,
    )


def load_registry(path: Path) -> TestRegistry:
    """Load and validate a registry file.

    Raises:
        ValueError: If the registry is invalid.
    """
    data = load_registry_yaml(path)
    validation = validate_registry_data(data)
    if not validation.valid:
        raise ValueError(f"Invalid registry: {validation.summary()}")
    for warning in validation.warnings:
        click.echo(f"Warning: {warning.path}: {warning.message}", err=True)
    return parse_registry_data(data, source=str(path), base_dir=path.parent)


def _error_message(error: Exception) -> str:
    # KeyError wraps its message in quotes
    if isinstance(error, KeyError) and error.args:
        return str(error.args[0])
    return str(error)


def resolve_test(registry: TestRegistry, test: str) -> int:
    """Turn a test name or index into a registry index."""
    if test.lstrip("-").isdigit():
        return int(test)
    return registry.index_of(test)


def resolve_variants(config: RunConfiguration, run_map: Optional[bool], run_globe: Optional[bool]) -> list[str]:
    """Variants to run: command-line flags override the config file."""
    variants = []
    if config.run_globe if run_globe is None else run_globe:
        variants.append("Globe")
    if config.run_map if run_map is None else run_map:
        variants.append("Map")
    return variants


def run_options(func):
    """Options shared by run and batch."""
    options = [
        click.option("--map/--no-map", "run_map", default=None, help="Run the Map variant."),
        click.option("--globe/--no-globe", "run_globe", default=None, help="Run the Globe variant."),
        click.option("--timeout", type=float, default=None,
                     help="Stop waiting for a test after this many seconds."),
        click.option("--save-report", is_flag=True, help="Save report to file."),
        click.option("--report-dir", type=click.Path(file_okay=False, path_type=Path),
                     default=None, help="Directory for saved reports."),
        click.option("--results-dir", type=click.Path(file_okay=False, path_type=Path),
                     default=None, help="Results cache directory, emptied before running."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--registry", "registry_path", envvar="AUTO_TESTER_REGISTRY", required=True,
              type=click.Path(dir_okay=False, path_type=Path), help="Registry YAML file.")
@click.option("--config", "config_path", default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help="Run configuration YAML file (default: $AUTO_TESTER_CONFIG).")
@click.option("--log-level", default="WARNING", type=click.Choice(LOG_LEVELS, case_sensitive=False))
@click.option("--pretty", is_flag=True, help="Pretty print output.")
@click.version_option(package_name="auto-tester")
@click.pass_context
def cli(ctx: click.Context, registry_path: Path, config_path: Optional[Path], log_level: str, pretty: bool):
    """Select and run registered test cases."""
    log_util.init(log_level)
    try:
        registry = load_registry(registry_path)
        config = load_config(config_path)
    except (FileNotFoundError, ValueError, AutoTesterError) as e:
        output_error(str(e), command=ctx.invoked_subcommand or "", pretty=pretty)
        ctx.exit(1)
    ctx.obj = CliState(registry=registry, config=config, pretty=pretty)


@cli.command("list")
@click.pass_obj
def list_tests(state: CliState):
    """List registered tests."""
    controller = RunController(state.registry, state.config)
    tests = []
    for i, descriptor in enumerate(state.registry):
        flags = controller.flags(i)
        tests.append({
            "index": i,
            "name": descriptor.name,
            "capture_delay": descriptor.capture_delay,
            "description": descriptor.description,
            "selected": flags.selected,
            "running": flags.running,
        })
    output(
        {
            "success": True,
            "command": "list",
            "data": {"tests": tests, "config": state.config.to_dict()},
            "message": f"{len(tests)} tests registered",
        },
        state.pretty,
    )


@cli.command("run")
@click.argument("test")
@click.option("--mode", type=click.Choice([m.value for m in RunMode]), default=RunMode.MANUAL.value,
              show_default=True)
@run_options
@click.pass_obj
def run_test(state: CliState, test: str, mode: str, run_map, run_globe, timeout, save_report,
             report_dir, results_dir):
    """Run one test, given by name or index."""
    reporter = JsonReporter()
    controller = RunController(
        state.registry, state.config, reporter=reporter, status=ConsoleStatusDisplay()
    )
    start_time = time.time()

    try:
        index = resolve_test(state.registry, test)
        if results_dir is not None:
            reset_results_dir(results_dir)
        session = controller.start_run(index, RunMode(mode), resolve_variants(state.config, run_map, run_globe))

        if not controller.wait_until_idle(timeout):
            controller.cancel_run()
            output_error(f"{session.test_name} did not complete within {timeout}s", "run", state.pretty,
                         test=session.test_name, duration_ms=int((time.time() - start_time) * 1000))
            sys.exit(1)

    except KeyboardInterrupt:
        controller.cancel_run()
        output_error("Test interrupted by user", "run", state.pretty,
                     duration_ms=int((time.time() - start_time) * 1000))
        sys.exit(130)

    except (AutoTesterError, KeyError, OSError) as e:
        output_error(_error_message(e), "run", state.pretty)
        sys.exit(1)

    entries = reporter.last if reporter.last is not None else session.results
    report = reporter.generate(entries, duration_ms=session.duration_ms, cancelled=session.cancelled)
    _finish(reporter, report, "run", f"report_{session.test_name}.json", save_report, report_dir, state.pretty)


@cli.command("batch")
@click.argument("tests", nargs=-1)
@run_options
@click.pass_obj
def run_batch(state: CliState, tests: tuple[str, ...], run_map, run_globe, timeout, save_report,
              report_dir, results_dir):
    """Run several tests in automatic mode (all tests when none are given)."""
    reporter = JsonReporter()
    controller = RunController(
        state.registry, state.config, reporter=reporter, status=ConsoleStatusDisplay()
    )
    runner = BatchRunner(controller, wait_timeout=timeout)

    try:
        indices = [resolve_test(state.registry, t) for t in tests] or None
        if results_dir is not None:
            reset_results_dir(results_dir)
        result = runner.run(indices, resolve_variants(state.config, run_map, run_globe))

    except KeyboardInterrupt:
        runner.cancel()
        output_error("Batch interrupted by user", "batch", state.pretty)
        sys.exit(130)

    except (AutoTesterError, KeyError, OSError) as e:
        output_error(_error_message(e), "batch", state.pretty)
        sys.exit(1)

    error = None
    if result.stalled:
        error = f"{result.stalled} did not complete within {timeout}s"
    report = reporter.generate(result.entries, duration_ms=result.duration_ms, error=error,
                               cancelled=result.cancelled)
    report["completed"] = result.completed
    _finish(reporter, report, "batch", "report_batch.json", save_report, report_dir, state.pretty)


def _finish(reporter: JsonReporter, report: dict[str, Any], command: str, filename: str,
            save_report: bool, report_dir: Optional[Path], pretty: bool) -> None:
    report_path = None
    if save_report:
        report_path = str(reporter.save(report, (report_dir or Path(".")) / filename))

    cli_output = reporter.generate_cli_output(report, command=command, report_path=report_path)
    output(cli_output, pretty)

    if not cli_output["success"]:
        sys.exit(1)


def main():
    """Main CLI entry point."""
    cli(prog_name="auto-tester")


if __name__ == "__main__":
    main()
