"""Test case that runs a shell command per variant."""

import logging
import subprocess
import time
from pathlib import Path
from typing import Optional, Union

from ..registry.schema import RunMode, Variant
from .base import BackgroundTestCase, TestResult

log = logging.getLogger(__name__)

# Longest tail of command output kept in a result's details
MAX_DETAILS_CHARS = 2000


def fill_placeholders(template: str, values: dict[str, str]) -> str:
    """Replace ``{key}`` for each known key, leaving other braces alone."""
    for key, value in values.items():
        template = template.replace("{" + key + "}", value)
    return template


class CommandTestCase(BackgroundTestCase):
    """Runs a command once for every configured variant.

    The command may contain ``{variant}`` (replaced with ``map`` or ``globe``)
    and ``{mode}`` placeholders. Exit code 0 means the variant passed.
    """

    def __init__(
        self,
        name: str,
        command: Union[str, list[str]],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
        actual_path: Optional[str] = None,
        baseline_path: Optional[str] = None,
    ):
        """Initialize command test case.

        Args:
            name: Test name.
            command: Shell command string or argv list.
            cwd: Working directory for the command.
            timeout: Per-variant timeout in seconds (None = no limit).
            actual_path: Template for the captured output file of a variant.
            baseline_path: Template for the baseline file of a variant.
        """
        super().__init__(name)
        self.command = command
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout
        self.actual_path = actual_path
        self.baseline_path = baseline_path

    def build_command(self, variant: Variant, mode: RunMode) -> Union[str, list[str]]:
        """Substitute placeholders for one variant.

        Only ``{variant}``, ``{mode}`` and ``{name}`` are replaced; any other
        braces (``awk '{print $1}'``, ``${HOME}``) are passed through as-is.
        """
        values = {"variant": variant.value.lower(), "mode": mode.value, "name": self.name}
        if isinstance(self.command, str):
            return fill_placeholders(self.command, values)
        return [fill_placeholders(part, values) for part in self.command]

    def run_variant(self, variant: Variant, mode: RunMode) -> TestResult:
        command = self.build_command(variant, mode)
        start_time = time.time()
        log.debug("Running %s [%s]: %s", self.name, variant.value, command)

        try:
            completed = subprocess.run(
                command,
                shell=isinstance(command, str),
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
            passed = completed.returncode == 0
            output = (completed.stdout or "") + (completed.stderr or "")
            details = output.strip()[-MAX_DETAILS_CHARS:]
            if not passed and not details:
                details = f"Exit code {completed.returncode}"

        except subprocess.TimeoutExpired:
            passed = False
            details = f"Timed out after {self.timeout}s"

        except OSError as e:
            passed = False
            details = f"Failed to run command: {e}"

        return TestResult(
            test_name=self.name,
            variant=variant.value,
            passed=passed,
            duration_ms=int((time.time() - start_time) * 1000),
            details=details,
            baseline_path=self._format_path(self.baseline_path, variant),
            actual_path=self._format_path(self.actual_path, variant),
        )

    def _format_path(self, template: Optional[str], variant: Variant) -> Optional[str]:
        if not template:
            return None
        return fill_placeholders(template, {"variant": variant.value.lower(), "name": self.name})
