"""Manifest augmentation -- enrich a draft manifest with embedded media metadata.

The probing augmentor reads every track of the reading order, sets the
per-track title, bitrate, and duration, then merges the tags of all tracks
into the publication metadata following the precedence lists in ``tags``.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Protocol

from loguru import logger
from PIL import Image

from . import tags as precedence
from .cover import decode_image
from .errors import ManifestBuildError
from .manifest import Contributor, Manifest, Metadata, Subject
from .probe import MediaProber, ProbeResult
from .tags import Tag, TagKind, filter_tags, first_date, first_string, strings

if TYPE_CHECKING:
    from .manifest import Link
    from .resources import ResourceProvider

log = logger.bind(stage="augment")


@dataclass(frozen=True)
class AugmentedManifest:
    manifest: Manifest
    cover: Image.Image | None = None


class ManifestAugmentor(Protocol):
    def augment(
        self, manifest: Manifest, resources: ResourceProvider,
    ) -> AugmentedManifest: ...


class NullManifestAugmentor:
    """Keeps the draft manifest as is, without a cover."""

    def augment(
        self, manifest: Manifest, resources: ResourceProvider,
    ) -> AugmentedManifest:
        return AugmentedManifest(manifest=manifest)


class ProbingManifestAugmentor:
    """Augments manifests with what a MediaProber reads from each track.

    Tracks are probed concurrently on up to ``max_workers`` threads; results
    are merged in reading order.
    """

    def __init__(self, prober: MediaProber, max_workers: int = 1) -> None:
        self.prober = prober
        self.max_workers = max(1, max_workers)

    def augment(
        self, manifest: Manifest, resources: ResourceProvider,
    ) -> AugmentedManifest:
        reading_order = manifest.reading_order
        log.debug(
            f"augment(tracks={len(reading_order)}, max_workers={self.max_workers})"
        )

        workers = min(self.max_workers, len(reading_order)) or 1
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(
                executor.map(lambda link: self._probe(link, resources), reading_order)
            )

        failed = sum(1 for r in results if r is None)
        if failed:
            log.warning(f"{failed} of {len(results)} tracks could not be probed")

        tracks = tuple(
            enrich_link(link, result) for link, result in zip(reading_order, results)
        )
        all_tags = merged_tags(results)
        metadata = merge_metadata(manifest.metadata, all_tags, results)

        return AugmentedManifest(
            manifest=manifest.copy(metadata=metadata, reading_order=tracks),
            cover=resolve_cover(all_tags),
        )

    def _probe(self, link: Link, resources: ResourceProvider) -> ProbeResult | None:
        try:
            return self.prober.probe(resources.file(link.href))
        except (ManifestBuildError, OSError) as e:
            log.warning(f"Skipping metadata for {link.href}: {e}")
            return None


def enrich_link(link: Link, result: ProbeResult | None) -> Link:
    """Copy the probed track attributes onto ``link``."""
    if result is None:
        return link
    return link.copy(
        title=first_string(result.tags, precedence.TRACK_TITLE),
        bitrate=result.bitrate,
        duration=result.duration,
    )


def merged_tags(results: list[ProbeResult | None]) -> tuple[Tag, ...]:
    """Tags of every probed track, in reading order.

    A title carried by every probed track is a title of the whole
    publication, so it is reported once under ``COMMON_TITLE``.
    """
    probed = [r for r in results if r is not None]
    all_tags = tuple(tag for r in probed for tag in r.tags)

    titles = {first_string(r.tags, precedence.TRACK_TITLE) for r in probed}
    if len(titles) == 1 and None not in titles:
        all_tags = (Tag(TagKind.COMMON_TITLE, titles.pop()),) + all_tags
    return all_tags


def total_duration(results: list[ProbeResult | None]) -> float | None:
    """Sum of the track durations, or None as soon as one is unknown."""

    def add(total: float | None, result: ProbeResult | None) -> float | None:
        if total is None or result is None or result.duration is None:
            return None
        return total + result.duration

    return reduce(add, results, 0.0)


def _contributors(all_tags: tuple[Tag, ...], kinds) -> tuple[Contributor, ...]:
    return tuple(Contributor(name) for name in strings(all_tags, kinds))


def merge_metadata(
    draft: Metadata,
    all_tags: tuple[Tag, ...],
    results: list[ProbeResult | None],
) -> Metadata:
    """Build the publication metadata from the merged track tags.

    Only the title falls back to the draft; every other field comes from the
    tags alone.
    """
    return draft.copy(
        title=first_string(all_tags, precedence.TITLE) or draft.title,
        subtitle=first_string(all_tags, precedence.SUBTITLE),
        modified=first_date(all_tags, precedence.MODIFIED),
        published=first_date(all_tags, precedence.PUBLISHED),
        languages=tuple(strings(all_tags, precedence.LANGUAGES)),
        subjects=tuple(
            Subject(name) for name in strings(all_tags, precedence.SUBJECTS)
        ),
        authors=_contributors(all_tags, precedence.AUTHORS),
        artists=_contributors(all_tags, precedence.ARTISTS),
        illustrators=_contributors(all_tags, precedence.ILLUSTRATORS),
        contributors=_contributors(all_tags, precedence.CONTRIBUTORS),
        publishers=_contributors(all_tags, precedence.PUBLISHERS),
        description=first_string(all_tags, precedence.DESCRIPTION),
        duration=total_duration(results),
    )


def resolve_cover(all_tags: tuple[Tag, ...]) -> Image.Image | None:
    """First artwork tag that decodes as an image."""
    for tag in filter_tags(all_tags, precedence.COVER):
        if isinstance(tag.value, bytes):
            image = decode_image(tag.value)
            if image is not None:
                return image
    return None
