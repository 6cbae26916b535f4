"""JSON report generator for test run results.

Generates structured JSON reports from the sorted result entries of a run.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..runner.result_collector import ResultEntry

log = logging.getLogger(__name__)


def _entry_passed(value: Any) -> Optional[bool]:
    """Pass/fail of an opaque result value, when it carries one."""
    passed = getattr(value, "passed", None)
    if passed is None and isinstance(value, dict):
        passed = value.get("passed")
    return None if passed is None else bool(passed)


def _entry_data(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class JsonReporter:
    """Collects published results and turns them into JSON reports."""

    def __init__(self):
        self.published: list[list[ResultEntry]] = []

    @property
    def last(self) -> Optional[list[ResultEntry]]:
        """Most recently published snapshot."""
        return self.published[-1] if self.published else None

    def publish(self, entries: list[ResultEntry]) -> None:
        """Receive the sorted results of a completed run."""
        log.debug("Received %d results", len(entries))
        self.published.append(list(entries))

    def generate(
        self,
        entries: list[ResultEntry],
        duration_ms: int = 0,
        error: Optional[str] = None,
        cancelled: bool = False,
    ) -> dict[str, Any]:
        """Generate a JSON report from result entries.

        Args:
            entries: Result entries in key order.
            duration_ms: Run duration in milliseconds.
            error: Overall error message if the run failed.
            cancelled: Whether the run was cancelled.

        Returns:
            Report dictionary ready for JSON serialization.
        """
        verdicts = [_entry_passed(e.value) for e in entries]
        passed = sum(1 for v in verdicts if v is True)
        failed = sum(1 for v in verdicts if v is False)

        if cancelled:
            status = "cancelled"
        elif error is not None or failed:
            status = "failed"
        else:
            status = "passed"

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": status,
            "summary": {
                "total": len(entries),
                "passed": passed,
                "failed": failed,
                "duration_ms": duration_ms,
            },
            "results": [
                {"key": e.key, "result": _entry_data(e.value)}
                for e in entries
            ],
            "error": error,
        }

    def save(self, report: dict[str, Any], path: Path) -> Path:
        """Save report to a JSON file.

        Args:
            report: Report dictionary.
            path: Output file path.

        Returns:
            Path to the saved file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)

        return path

    def to_json_string(self, report: dict[str, Any], pretty: bool = True) -> str:
        """Convert report to JSON string."""
        if pretty:
            return json.dumps(report, indent=2, ensure_ascii=False, default=str)
        return json.dumps(report, ensure_ascii=False, default=str)

    def generate_cli_output(
        self,
        report: dict[str, Any],
        command: str = "run",
        report_path: Optional[str] = None,
    ) -> dict[str, Any]:
        """Generate the CLI's JSON output document.

        {
            "success": bool,
            "command": "run",
            "data": { ... },
            "message": str
        }
        """
        summary = report["summary"]
        success = report["status"] == "passed"

        data: dict[str, Any] = {
            "total_tests": summary["total"],
            "passed": summary["passed"],
            "failed": summary["failed"],
            "duration_ms": summary["duration_ms"],
            "results": report["results"],
        }

        if report_path:
            data["report_path"] = report_path

        if report["status"] == "cancelled":
            message = "Run cancelled"
        elif not success and report.get("error"):
            message = f"Run failed: {report['error']}"
        elif not success:
            message = f"{summary['failed']} of {summary['total']} results failed"
        elif summary["total"] == 0:
            message = "No results reported"
        else:
            message = "All tests passed"

        return {
            "success": success,
            "command": command,
            "data": data,
            "message": message,
        }
