"""Console status display for running tests."""

from typing import Callable, Optional

import click

DEFAULT_TITLE = "Tests"


class ConsoleStatusDisplay:
    """Shows "<test> (<seconds left>)" while a test runs.

    Output goes to stderr so stdout stays a single JSON document.
    """

    def __init__(self, echo: Optional[Callable[[str], None]] = None):
        self._echo = echo or (lambda message: click.echo(message, err=True))
        self.title = DEFAULT_TITLE

    def on_tick(self, label: str, remaining: int) -> None:
        self.title = f"{label} ({remaining})"
        self._echo(self.title)

    def finished(self) -> None:
        self.title = DEFAULT_TITLE
        self._echo(self.title)
