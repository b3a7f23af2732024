"""Forum endpoint configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_FORUM_BASE_URL = "https://linux.do"
FORUM_TIMEOUT_SECONDS = 15.0
FORUM_USER_AGENT = "Mozilla/5.0 (compatible; topicstream)"


def _default_headers(cookie: str | None) -> dict[str, str]:
    headers = {
        "Accept": "application/json, text/javascript, */*; q=0.01",
        "X-Requested-With": "XMLHttpRequest",
        "User-Agent": FORUM_USER_AGENT,
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


@dataclass(frozen=True)
class ForumConfig:
    """Where the forum lives and how to talk to it."""

    base_url: str = DEFAULT_FORUM_BASE_URL
    cookie: str | None = field(default=None, repr=False)
    resilience: ResilienceConfig | None = None

    def resolved_resilience(self) -> ResilienceConfig:
        if self.resilience is not None:
            return self.resilience
        return ResilienceConfig(
            name="forum",
            base_url=self.base_url,
            timeout_seconds=FORUM_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
            default_headers=_default_headers(self.cookie),
        )


def _validate_base_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(
            f"Invalid forum base URL: {value!r}", variable="TOPICSTREAM_BASE_URL"
        )
    return value.rstrip("/")


def get_forum_config(*, resilience: ResilienceConfig | None = None) -> ForumConfig:
    base_url = os.getenv("TOPICSTREAM_BASE_URL") or DEFAULT_FORUM_BASE_URL
    cookie = os.getenv("TOPICSTREAM_COOKIE") or None
    return ForumConfig(
        base_url=_validate_base_url(base_url),
        cookie=cookie,
        resilience=resilience,
    )
