"""Audiobook parser -- turns a bundle of audio files into a publication builder."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .augmentor import ManifestAugmentor, ProbingManifestAugmentor
from .classifier import classify, guess_title
from .cover import GeneratedCoverService
from .ffprobe import duration_to_timestamp
from .locator import AudioLocatorService
from .manifest import Manifest, Metadata
from .models import MediaType
from .probe import FFprobeMediaProber
from .resources import ResourceProvider, open_asset

if TYPE_CHECKING:
    from .config import ParserConfig

log = logger.bind(stage="parser")


@dataclass(frozen=True)
class PublicationBuilder:
    """Everything the publication pipeline needs to build an audiobook.

    ``cover_factory`` is None when no cover was found.
    """

    media_type: str
    manifest: Manifest
    resources: ResourceProvider
    cover_factory: Callable[[], GeneratedCoverService] | None
    locator_factory: Callable[[tuple], AudioLocatorService]

    def cover_service(self) -> GeneratedCoverService | None:
        return self.cover_factory() if self.cover_factory else None

    def locator_service(self) -> AudioLocatorService:
        return self.locator_factory(self.manifest.reading_order)


class AudioParser:
    """Parses an audiobook from a folder, a zip/zab archive, or a lone audio file."""

    def __init__(self, augmentor: ManifestAugmentor | None = None) -> None:
        self.augmentor = augmentor or ProbingManifestAugmentor(FFprobeMediaProber())

    @classmethod
    def from_config(cls, config: ParserConfig) -> AudioParser:
        prober = FFprobeMediaProber.from_config(config)
        return cls(ProbingManifestAugmentor(prober, max_workers=config.probe_workers))

    def parse(self, resources: ResourceProvider) -> PublicationBuilder | None:
        """Return a publication builder, or None if this is not an audiobook."""
        reading_order = classify(resources.links, resources.media_type)
        if reading_order is None:
            log.info(f"{resources.name} is not an audiobook")
            return None

        draft = Manifest(
            metadata=Metadata(title=guess_title(resources.links) or resources.name),
            reading_order=reading_order,
        )
        augmented = self.augmentor.augment(draft, resources)
        manifest = augmented.manifest

        duration = manifest.metadata.duration
        log.info(
            f"Parsed '{manifest.metadata.title}': "
            f"{len(manifest.reading_order)} tracks, "
            f"{duration_to_timestamp(duration) if duration is not None else 'unknown duration'}, "
            f"cover={'yes' if augmented.cover is not None else 'no'}"
        )

        return PublicationBuilder(
            media_type=str(MediaType.ZAB),
            manifest=manifest,
            resources=resources,
            cover_factory=(
                GeneratedCoverService.make_factory(augmented.cover)
                if augmented.cover is not None
                else None
            ),
            locator_factory=AudioLocatorService.make_factory(),
        )


def try_parse(path: Path, parser: AudioParser | None = None) -> PublicationBuilder | None:
    """Open ``path`` and parse it as an audiobook.

    The caller owns the returned builder's resources and should ``close()``
    them. Resources are closed here when the bundle is not applicable.
    Raises ResourceError only when ``path`` can't be opened at all.
    """
    parser = parser or AudioParser()
    resources = open_asset(path)
    builder = parser.parse(resources)
    if builder is None:
        resources.close()
    return builder
