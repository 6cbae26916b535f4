"""Transport module - HTTP communication with target apps."""

from .http_client import (
    AutoTestHttpClient,
    RemoteResult,
    RemoteSession,
    RemoteStatus,
    VariantOutcome,
)
from .retry_policy import (
    RetryPolicy,
    aggressive_retry_policy,
    default_retry_policy,
    no_retry_policy,
    resolve_retry_policy,
)

__all__ = [
    "AutoTestHttpClient",
    "RemoteResult",
    "RemoteSession",
    "RemoteStatus",
    "VariantOutcome",
    "RetryPolicy",
    "aggressive_retry_policy",
    "default_retry_policy",
    "no_retry_policy",
    "resolve_retry_policy",
]
