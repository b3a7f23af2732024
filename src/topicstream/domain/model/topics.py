"""Forum content entities as seen by the client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Topic:
    """One forum topic, the unit of feed content.

    Every field comes from the remote feed and is replaced on the next merge.
    ``highest_seen_sequence`` is the highest post number in the topic and
    ``viewer_last_seen_sequence`` the last post number the signed-in viewer read
    on the site (``None`` when the feed was fetched anonymously).
    """

    id: int
    title: str
    created_at: datetime
    last_activity_at: datetime
    category_id: int | None = None
    tags: tuple[str, ...] = ()
    view_count: int = 0
    reply_count: int = 0
    last_author_id: int | None = None
    highest_seen_sequence: int = 0
    viewer_last_seen_sequence: int | None = None
    slug: str | None = None
    excerpt: str | None = field(default=None, repr=False)
    last_poster_username: str | None = None

    def __post_init__(self) -> None:
        if self.view_count < 0 or self.reply_count < 0:
            raise ValueError(f"Topic {self.id} has negative counters")
        if self.highest_seen_sequence < 0:
            raise ValueError(f"Topic {self.id} has a negative post sequence")


@dataclass(frozen=True, slots=True, kw_only=True)
class Author:
    """Forum user referenced by a topic's poster list."""

    id: int
    trust_level: int = 0
    is_admin: bool = False
    username: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.trust_level <= 4:
            raise ValueError(f"Trust level must be between 0 and 4, got {self.trust_level}")
