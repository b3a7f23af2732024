"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Bounded retry applied by the transport before an error reaches the caller.

    Timeouts and network errors are always retryable; ``status_forcelist`` adds
    the HTTP statuses that are.
    """

    total: int = 1
    backoff_factor: float = 0.5
    backoff_jitter: float = 1.0
    # The forum's mutations are POST and PUT; both are safe to repeat.
    allowed_methods: frozenset[str] = frozenset({"GET", "POST", "PUT"})
    # 403 is what the forum's edge proxy answers to a cold client; a retry usually passes.
    status_forcelist: frozenset[int] = frozenset({403, 429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """RFC 9111 response cache; ``sqlite`` lives next to the key-value store."""

    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
