"""Publication manifest types and their JSON rendering.

A Manifest is built once per parse and never mutated afterwards; enriched
versions are produced with ``copy()``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from .models import Profile

_UNSET: Any = object()


@dataclass(frozen=True)
class Contributor:
    name: str


@dataclass(frozen=True)
class Subject:
    name: str


@dataclass(frozen=True)
class Link:
    """A resource in the bundle, with the per-track attributes once probed.

    Identity is the href. ``bitrate`` is in bits per second and ``duration``
    in seconds.
    """

    href: str
    media_type: str
    title: str | None = None
    bitrate: float | None = None
    duration: float | None = None

    def copy(
        self,
        title: str | None = _UNSET,
        bitrate: float | None = _UNSET,
        duration: float | None = _UNSET,
    ) -> Link:
        changes = {
            name: value
            for name, value in (
                ("title", title),
                ("bitrate", bitrate),
                ("duration", duration),
            )
            if value is not _UNSET
        }
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"href": self.href, "type": self.media_type}
        if self.title is not None:
            data["title"] = self.title
        if self.bitrate is not None:
            data["bitrate"] = self.bitrate
        if self.duration is not None:
            data["duration"] = self.duration
        return data


@dataclass(frozen=True)
class Metadata:
    title: str
    subtitle: str | None = None
    modified: datetime | None = None
    published: datetime | None = None
    languages: tuple[str, ...] = ()
    subjects: tuple[Subject, ...] = ()
    authors: tuple[Contributor, ...] = ()
    artists: tuple[Contributor, ...] = ()
    illustrators: tuple[Contributor, ...] = ()
    contributors: tuple[Contributor, ...] = ()
    publishers: tuple[Contributor, ...] = ()
    description: str | None = None
    duration: float | None = None
    conforms_to: frozenset[Profile] = field(
        default_factory=lambda: frozenset({Profile.AUDIOBOOK})
    )

    def copy(self, **changes: Any) -> Metadata:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "conformsTo": sorted(str(p) for p in self.conforms_to),
            "title": self.title,
        }
        if self.subtitle is not None:
            data["subtitle"] = self.subtitle
        if self.modified is not None:
            data["modified"] = self.modified.isoformat()
        if self.published is not None:
            data["published"] = self.published.isoformat()
        if self.languages:
            data["language"] = list(self.languages)
        if self.subjects:
            data["subject"] = [{"name": s.name} for s in self.subjects]
        for key, people in (
            ("author", self.authors),
            ("artist", self.artists),
            ("illustrator", self.illustrators),
            ("contributor", self.contributors),
            ("publisher", self.publishers),
        ):
            if people:
                data[key] = [{"name": c.name} for c in people]
        if self.description is not None:
            data["description"] = self.description
        if self.duration is not None:
            data["duration"] = self.duration
        return data


@dataclass(frozen=True)
class Manifest:
    metadata: Metadata
    reading_order: tuple[Link, ...]

    def copy(
        self,
        metadata: Metadata | None = None,
        reading_order: tuple[Link, ...] | None = None,
    ) -> Manifest:
        return Manifest(
            metadata=metadata if metadata is not None else self.metadata,
            reading_order=(
                reading_order if reading_order is not None else self.reading_order
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "readingOrder": [link.to_dict() for link in self.reading_order],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
