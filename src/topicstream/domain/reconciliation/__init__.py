"""Pure state transitions and the core that sequences them."""

from __future__ import annotations

from .bookmarks import BookmarkOperation, BookmarkReconciler, apply_bookmark_snapshot, toggle
from .engine import BookmarkToggleResult, PollResult, ReconciliationCore, query_for
from .merge import MergeEngine, MergeResult
from .projection import QUALITY_REPLY_THRESHOLD, is_new, project
from .read_status import is_read, is_remotely_read, mark_read, unmark_read, unread_count

__all__ = [
    "QUALITY_REPLY_THRESHOLD",
    "BookmarkOperation",
    "BookmarkReconciler",
    "BookmarkToggleResult",
    "MergeEngine",
    "MergeResult",
    "PollResult",
    "ReconciliationCore",
    "apply_bookmark_snapshot",
    "is_new",
    "is_read",
    "is_remotely_read",
    "mark_read",
    "project",
    "query_for",
    "toggle",
    "unmark_read",
    "unread_count",
]
