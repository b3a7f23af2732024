"""Category catalogue of the default forum."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    slug: str
    name: str


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(4, "develop", "开发调优"),
    Category(98, "domestic", "国产替代"),
    Category(14, "resource", "资源荟萃"),
    Category(42, "wiki", "文档共建"),
    Category(27, "job", "非我莫属"),
    Category(32, "reading", "读书成诗"),
    Category(34, "news", "前沿快讯"),
    Category(92, "feeds", "网络记忆"),
    Category(36, "welfare", "福利羊毛"),
    Category(11, "gossip", "搞七捻三"),
    Category(2, "feedback", "运营反馈"),
)


def index_categories(categories: Iterable[Category]) -> dict[int, Category]:
    return {category.id: category for category in categories}


DEFAULT_CATEGORY_INDEX: Mapping[int, Category] = index_categories(DEFAULT_CATEGORIES)


def category_slug(
    category_id: int | None,
    catalogue: Mapping[int, Category] = DEFAULT_CATEGORY_INDEX,
) -> str | None:
    """Return the slug for ``category_id`` or ``None`` when it is unknown."""

    if category_id is None:
        return None
    category = catalogue.get(category_id)
    return category.slug if category else None
