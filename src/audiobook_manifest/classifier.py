"""Decide whether a bundle is an audiobook and compute its default reading order."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from loguru import logger

from .manifest import Link
from .models import IGNORED_EXTENSIONS, IGNORED_FILENAMES, MediaType, is_audio

log = logger.bind(stage="classify")


def ignores(link: Link) -> bool:
    """True for companion files that are neither tracks nor foreign content.

    Playlists and cue-like text files, hidden files, and Windows thumbnail
    caches.
    """
    path = PurePosixPath(link.href)
    filename = path.name
    extension = path.suffix[1:].lower()
    return (
        extension in IGNORED_EXTENSIONS
        or filename.startswith(".")
        or filename in IGNORED_FILENAMES
    )


def accepts(links: Iterable[Link], media_type: str | None = None) -> bool:
    """True if the bundle can be parsed as an audiobook.

    The audiobook archive type is always accepted. Any other bundle must be
    non-empty and contain only audio and ignorable resources.
    """
    if media_type == MediaType.ZAB:
        return True
    links = tuple(links)
    return bool(links) and all(
        ignores(link) or is_audio(link.media_type) for link in links
    )


def reading_order_key(link: Link) -> tuple[str, str]:
    """Case-insensitive href order, with the raw href as tie breaker."""
    return (link.href.casefold(), link.href)


def default_reading_order(links: Iterable[Link]) -> tuple[Link, ...]:
    return tuple(
        sorted(
            (
                link
                for link in links
                if not ignores(link) and is_audio(link.media_type)
            ),
            key=reading_order_key,
        )
    )


def classify(
    links: Iterable[Link], media_type: str | None = None,
) -> tuple[Link, ...] | None:
    """Return the ordered audio tracks of the bundle, or None if it isn't one.

    None means "not applicable": a foreign resource disqualified the bundle or
    no audio track was left after filtering.
    """
    links = tuple(links)
    if not accepts(links, media_type):
        foreign = [
            link.href
            for link in links
            if not ignores(link) and not is_audio(link.media_type)
        ]
        log.debug(f"Not an audiobook: {len(links)} resources, foreign={foreign[:5]}")
        return None

    reading_order = default_reading_order(links)
    if not reading_order:
        log.debug("Not an audiobook: no audio resources")
        return None

    log.debug(f"Default reading order has {len(reading_order)} tracks")
    return reading_order


def guess_title(links: Iterable[Link]) -> str | None:
    """Name of the single top-level folder holding every track, if any.

    Bundles are often a zip of one "Author - Title" folder; ignorable files
    don't count.
    """
    roots: set[str] = set()
    for link in links:
        if ignores(link):
            continue
        parts = PurePosixPath(link.href).parts
        if len(parts) < 2:
            return None
        roots.add(parts[0])
    if len(roots) != 1:
        return None
    return roots.pop()
