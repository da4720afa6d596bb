"""Embedded tag kinds, container key tables, and metadata precedence lists.

Tag kinds are grouped by key space: ``common`` kinds are container-neutral,
``id3`` kinds come from MP3 files and ``itunes`` kinds from MP4 files.
A probed file reports each tag under its common kind and, when the container
has one, under its container-specific kind too.

The precedence lists at the bottom drive publication metadata merging. For a
list of kinds, every value of the first kind (across all tracks) comes
before any value of the second kind, and so on.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class TagKind(StrEnum):
    COMMON_TITLE = "common/title"
    COMMON_ALBUM_NAME = "common/albumName"
    COMMON_ARTIST = "common/artist"
    COMMON_AUTHOR = "common/author"
    COMMON_CONTRIBUTOR = "common/contributor"
    COMMON_PUBLISHER = "common/publisher"
    COMMON_CREATION_DATE = "common/creationDate"
    COMMON_LAST_MODIFIED_DATE = "common/lastModifiedDate"
    COMMON_LANGUAGE = "common/language"
    COMMON_SUBJECT = "common/subject"
    COMMON_DESCRIPTION = "common/description"
    COMMON_ARTWORK = "common/artwork"

    TRACK_TITLE = "track/title"

    ID3_ALBUM_TITLE = "id3/TALB"
    ID3_SUBTITLE = "id3/TIT3"
    ID3_DATE = "id3/TDRC"
    ID3_LANGUAGE = "id3/TLAN"
    ID3_ORIGINAL_ARTIST = "id3/TOPE"
    ID3_PUBLISHER = "id3/TPUB"
    ID3_ATTACHED_PICTURE = "id3/APIC"

    ITUNES_ALBUM = "itsk/@alb"
    ITUNES_TRACK_SUBTITLE = "itsk/@st3"
    ITUNES_AUTHOR = "itsk/@aut"
    ITUNES_ARTIST = "itsk/@ART"
    ITUNES_ORIGINAL_ARTIST = "itsk/@ope"
    ITUNES_ALBUM_ARTIST = "itsk/aART"
    ITUNES_PUBLISHER = "itsk/@pub"
    ITUNES_DESCRIPTION = "itsk/desc"
    ITUNES_COVER_ART = "itsk/covr"


@dataclass(frozen=True)
class Tag:
    kind: TagKind
    value: str | bytes


class KeySpace(StrEnum):
    ID3 = "id3"
    ITUNES = "itunes"
    OTHER = "other"


def key_space_for(container: str) -> KeySpace:
    """Map an ffprobe format_name to the tag key space it uses."""
    names = set(container.lower().split(","))
    if "mp3" in names:
        return KeySpace.ID3
    if names & {"mov", "mp4", "m4a", "m4b"}:
        return KeySpace.ITUNES
    return KeySpace.OTHER


# ffprobe tag keys (lowercased) to kinds, shared by every container
COMMON_KEYS: dict[str, tuple[TagKind, ...]] = {
    "title": (TagKind.TRACK_TITLE,),
    "album": (TagKind.COMMON_ALBUM_NAME,),
    "artist": (TagKind.COMMON_ARTIST,),
    "author": (TagKind.COMMON_AUTHOR,),
    "composer": (TagKind.COMMON_CONTRIBUTOR,),
    "performer": (TagKind.COMMON_CONTRIBUTOR,),
    "publisher": (TagKind.COMMON_PUBLISHER,),
    "organization": (TagKind.COMMON_PUBLISHER,),
    "modification_time": (TagKind.COMMON_LAST_MODIFIED_DATE,),
    "language": (TagKind.COMMON_LANGUAGE,),
    "genre": (TagKind.COMMON_SUBJECT,),
    "description": (TagKind.COMMON_DESCRIPTION,),
    "synopsis": (TagKind.COMMON_DESCRIPTION,),
    "comment": (TagKind.COMMON_DESCRIPTION,),
}

CONTAINER_KEYS: dict[KeySpace, dict[str, tuple[TagKind, ...]]] = {
    KeySpace.ID3: {
        "album": (TagKind.ID3_ALBUM_TITLE,),
        "tit3": (TagKind.ID3_SUBTITLE,),
        "subtitle": (TagKind.ID3_SUBTITLE,),
        "date": (TagKind.ID3_DATE,),
        "language": (TagKind.ID3_LANGUAGE,),
        "tope": (TagKind.ID3_ORIGINAL_ARTIST,),
        "original_artist": (TagKind.ID3_ORIGINAL_ARTIST,),
        "publisher": (TagKind.ID3_PUBLISHER,),
    },
    KeySpace.ITUNES: {
        "album": (TagKind.ITUNES_ALBUM,),
        "subtitle": (TagKind.ITUNES_TRACK_SUBTITLE,),
        "author": (TagKind.ITUNES_AUTHOR,),
        "artist": (TagKind.ITUNES_ARTIST,),
        "original_artist": (TagKind.ITUNES_ORIGINAL_ARTIST,),
        "album_artist": (TagKind.ITUNES_ALBUM_ARTIST,),
        "publisher": (TagKind.ITUNES_PUBLISHER,),
        "description": (TagKind.ITUNES_DESCRIPTION,),
        "date": (TagKind.COMMON_CREATION_DATE,),
    },
    KeySpace.OTHER: {
        "date": (TagKind.COMMON_CREATION_DATE,),
    },
}

ARTWORK_KINDS: dict[KeySpace, TagKind] = {
    KeySpace.ID3: TagKind.ID3_ATTACHED_PICTURE,
    KeySpace.ITUNES: TagKind.ITUNES_COVER_ART,
    KeySpace.OTHER: TagKind.COMMON_ARTWORK,
}


def tags_from_keys(raw: dict[str, str], key_space: KeySpace) -> tuple[Tag, ...]:
    """Translate ffprobe's key/value tags into kinded tags.

    Keys are visited in their original order; blank values and unknown keys
    are dropped.
    """
    container_keys = CONTAINER_KEYS[key_space]
    tags: list[Tag] = []
    for key, value in raw.items():
        if not isinstance(value, str) or not value.strip():
            continue
        key = key.lower()
        for kind in COMMON_KEYS.get(key, ()) + container_keys.get(key, ()):
            tags.append(Tag(kind, value.strip()))
    return tuple(tags)


# -- Precedence lists --

TRACK_TITLE: tuple[TagKind, ...] = (TagKind.TRACK_TITLE,)

TITLE: tuple[TagKind, ...] = (
    TagKind.COMMON_TITLE,
    TagKind.ID3_ALBUM_TITLE,
    TagKind.ITUNES_ALBUM,
    TagKind.COMMON_ALBUM_NAME,
)
SUBTITLE: tuple[TagKind, ...] = (TagKind.ID3_SUBTITLE, TagKind.ITUNES_TRACK_SUBTITLE)
MODIFIED: tuple[TagKind, ...] = (TagKind.COMMON_LAST_MODIFIED_DATE,)
PUBLISHED: tuple[TagKind, ...] = (TagKind.COMMON_CREATION_DATE, TagKind.ID3_DATE)
LANGUAGES: tuple[TagKind, ...] = (TagKind.COMMON_LANGUAGE, TagKind.ID3_LANGUAGE)
SUBJECTS: tuple[TagKind, ...] = (TagKind.COMMON_SUBJECT,)
AUTHORS: tuple[TagKind, ...] = (TagKind.COMMON_AUTHOR, TagKind.ITUNES_AUTHOR)
ARTISTS: tuple[TagKind, ...] = (
    TagKind.COMMON_ARTIST,
    TagKind.ID3_ORIGINAL_ARTIST,
    TagKind.ITUNES_ARTIST,
    TagKind.ITUNES_ORIGINAL_ARTIST,
)
ILLUSTRATORS: tuple[TagKind, ...] = (TagKind.ITUNES_ALBUM_ARTIST,)
CONTRIBUTORS: tuple[TagKind, ...] = (TagKind.COMMON_CONTRIBUTOR,)
PUBLISHERS: tuple[TagKind, ...] = (
    TagKind.COMMON_PUBLISHER,
    TagKind.ID3_PUBLISHER,
    TagKind.ITUNES_PUBLISHER,
)
DESCRIPTION: tuple[TagKind, ...] = (
    TagKind.COMMON_DESCRIPTION,
    TagKind.ITUNES_DESCRIPTION,
)
COVER: tuple[TagKind, ...] = (
    TagKind.COMMON_ARTWORK,
    TagKind.ID3_ATTACHED_PICTURE,
    TagKind.ITUNES_COVER_ART,
)


# -- Accessors --


def filter_tags(tags: Iterable[Tag], kinds: Iterable[TagKind]) -> Iterator[Tag]:
    """Yield tags kind by kind, in the order of ``kinds``."""
    tags = tuple(tags)
    for kind in kinds:
        for tag in tags:
            if tag.kind == kind:
                yield tag


def strings(tags: Iterable[Tag], kinds: Iterable[TagKind]) -> list[str]:
    """All string values for ``kinds``, duplicates removed, first seen wins."""
    seen: dict[str, str] = {}
    for tag in filter_tags(tags, kinds):
        if isinstance(tag.value, str):
            seen.setdefault(tag.value, tag.value)
    return list(seen.values())


def first_string(tags: Iterable[Tag], kinds: Iterable[TagKind]) -> str | None:
    for tag in filter_tags(tags, kinds):
        if isinstance(tag.value, str):
            return tag.value
    return None


def first_date(tags: Iterable[Tag], kinds: Iterable[TagKind]) -> datetime | None:
    """First tag value for ``kinds`` that parses as a date."""
    for tag in filter_tags(tags, kinds):
        if isinstance(tag.value, str):
            parsed = parse_date(tag.value)
            if parsed is not None:
                return parsed
    return None


_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?(?:-(\d{2}))?$")


def parse_date(value: str) -> datetime | None:
    """Parse ISO 8601 timestamps and the partial dates ID3 allows.

    "2019", "2019-05" and "2019-05-04" are accepted as well as full
    timestamps with or without a trailing "Z".
    """
    value = value.strip()
    match = _PARTIAL_DATE.match(value)
    if match:
        year, month, day = match.groups()
        try:
            return datetime(int(year), int(month or 1), int(day or 1))
        except ValueError:
            return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
