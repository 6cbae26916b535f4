"""Retry behaviour for requests sent to a target app.

A remote registry entry may carry a ``retry`` option, either a preset name::

    retry: aggressive

or explicit fields::

    retry:
      max_retries: 2
      initial_delay: 0.25
"""

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Iterator, Optional, Union

TRANSIENT_STATUSES = frozenset({500, 502, 503, 504})


@dataclass
class RetryPolicy:
    """Exponential backoff between attempts against a target app."""
    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0
    retry_statuses: frozenset[int] = field(default_factory=lambda: TRANSIENT_STATUSES)

    def get_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (0-indexed).

        Args:
            attempt: Number of the attempt that just failed.

        Returns:
            Backoff delay, capped at ``max_delay``.
        """
        return min(self.initial_delay * self.backoff_factor ** attempt, self.max_delay)

    def can_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed."""
        return attempt < self.max_retries

    def should_retry_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses

    def delays(self) -> Iterator[float]:
        """Yield the delay before each retry, in order."""
        for attempt in range(self.max_retries):
            yield self.get_delay(attempt)

    @classmethod
    def from_options(cls, options: Union[str, dict[str, Any], None]) -> "RetryPolicy":
        """Build a policy from a registry ``retry`` value.

        Raises:
            ValueError: Unknown preset name or unknown field.
        """
        if options is None:
            return default_retry_policy()
        if isinstance(options, str):
            factory = PRESETS.get(options)
            if factory is None:
                raise ValueError(
                    f"Unknown retry preset '{options}'. "
                    f"Must be one of: {', '.join(sorted(PRESETS))}"
                )
            return factory()

        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        values = dict(options)
        if "retry_statuses" in values:
            values["retry_statuses"] = frozenset(int(s) for s in values["retry_statuses"])
        return cls(**values)


def default_retry_policy() -> RetryPolicy:
    """3 retries, 1s initial delay, 2x backoff, 30s max."""
    return RetryPolicy()


def aggressive_retry_policy() -> RetryPolicy:
    """Policy for target apps that are slow to come up after launch.

    5 retries, 0.5s initial delay, 1.5x backoff, 10s max.
    """
    return RetryPolicy(max_retries=5, initial_delay=0.5, backoff_factor=1.5, max_delay=10.0)


def no_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=0)


PRESETS: dict[str, Callable[[], RetryPolicy]] = {
    "default": default_retry_policy,
    "aggressive": aggressive_retry_policy,
    "none": no_retry_policy,
}


def resolve_retry_policy(value: Optional[Union[str, dict, RetryPolicy]]) -> RetryPolicy:
    """Accept an existing policy or a registry ``retry`` value."""
    if isinstance(value, RetryPolicy):
        return value
    return RetryPolicy.from_options(value)
