"""Comma-separated keyword lists as typed in the settings panel."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


def parse_keywords(spec: str | None) -> tuple[str, ...]:
    """Split ``spec`` on commas into lower-cased, non-blank keywords."""

    if not spec:
        return ()
    return tuple(keyword for part in spec.split(",") if (keyword := part.strip().lower()))


def matches_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)
