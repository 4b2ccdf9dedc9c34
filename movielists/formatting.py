"""Normalise heterogeneous TMDB records into :class:`ListItem` values."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from .models import Category, ItemType, ListItem, ResultPage

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown name"
RENDERABLE_MEDIA_TYPES: frozenset[str] = frozenset({"movie", "tv", "person"})

Record = Mapping[str, Any]


def _record_id(record: Record) -> int | None:
    value = record.get("id")
    if isinstance(value, bool):
        return None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _build(
    record: Record,
    item_type: ItemType,
    *,
    title_key: str,
    poster_key: str,
    sub_title: str | None = None,
) -> ListItem | None:
    tmdb_id = _record_id(record)
    if tmdb_id is None:
        logger.debug("Dropping %s record without an id: %r", item_type, record)
        return None
    return ListItem(
        tmdb_id=tmdb_id,
        type=item_type,
        title=_text(record.get(title_key)) or UNKNOWN_NAME,
        sub_title=sub_title,
        poster=_text(record.get(poster_key)),
    )


def format_movie(record: Record) -> ListItem | None:
    return _build(record, "movie", title_key="title", poster_key="poster_path")


def format_tv_show(record: Record) -> ListItem | None:
    return _build(record, "tv", title_key="name", poster_key="poster_path")


def format_person(record: Record) -> ListItem | None:
    return _build(record, "person", title_key="name", poster_key="profile_path")


_RECORD_FORMATTERS: dict[str, Callable[[Record], ListItem | None]] = {
    "movie": format_movie,
    "tv": format_tv_show,
    "person": format_person,
}


def _collect(
    records: Iterable[Any], formatter: Callable[[Record], ListItem | None]
) -> list[ListItem]:
    items: list[ListItem] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        item = formatter(record)
        if item is not None:
            items.append(item)
    return items


def format_search_movie(page: ResultPage) -> list[ListItem]:
    return _collect(page.results, format_movie)


def format_search_tv_show(page: ResultPage) -> list[ListItem]:
    return _collect(page.results, format_tv_show)


def format_search_person(page: ResultPage) -> list[ListItem]:
    return _collect(page.results, format_person)


def format_mixed_record(record: Record) -> ListItem | None:
    """Format a record carrying its own ``media_type``; unknown types yield None."""

    media_type = record.get("media_type")
    if media_type not in RENDERABLE_MEDIA_TYPES:
        return None
    return _RECORD_FORMATTERS[media_type](record)


def format_search_all(page: ResultPage) -> list[ListItem]:
    """Format a multi-search or trending page, skipping unrenderable types."""

    return _collect(page.results, format_mixed_record)


SEARCH_FORMATTERS: dict[Category, Callable[[ResultPage], list[ListItem]]] = {
    Category.ALL: format_search_all,
    Category.MOVIE: format_search_movie,
    Category.TV: format_search_tv_show,
    Category.PERSON: format_search_person,
}


def format_cast(cast: Iterable[Any], limit: int | None = None) -> list[ListItem]:
    """Format the cast of a movie or tv show.

    The credits endpoint occasionally omits ids on cast entries; those are
    kept with ``tmdb_id`` 0 rather than dropped.
    """

    items: list[ListItem] = []
    for entry in cast:
        if not isinstance(entry, Mapping):
            continue
        items.append(
            ListItem(
                tmdb_id=_record_id(entry) or 0,
                type="person",
                title=_text(entry.get("name")) or UNKNOWN_NAME,
                sub_title=_text(entry.get("character")),
                poster=_text(entry.get("profile_path")),
            )
        )
        if limit is not None and len(items) >= limit:
            break
    return items


def format_person_credits(credits: Record) -> list[ListItem]:
    """Format a person's combined cast credits, one entry per title."""

    items: list[ListItem] = []
    seen: set[tuple[str, int]] = set()
    for entry in credits.get("cast") or []:
        if not isinstance(entry, Mapping):
            continue
        media_type = entry.get("media_type")
        if media_type == "movie":
            item = _build(
                entry,
                "movie",
                title_key="title",
                poster_key="poster_path",
                sub_title=_text(entry.get("character")),
            )
        elif media_type == "tv":
            item = _build(
                entry,
                "tv",
                title_key="name",
                poster_key="poster_path",
                sub_title=_text(entry.get("character")),
            )
        else:
            continue
        if item is None or item.key in seen:
            continue
        seen.add(item.key)
        items.append(item)
    return items
