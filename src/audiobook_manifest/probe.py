"""Media probing -- duration, bitrate, and embedded tags of one audio file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

from . import ffprobe
from .errors import ExternalToolError
from .tags import ARTWORK_KINDS, Tag, key_space_for, tags_from_keys

log = logger.bind(stage="probe")


@dataclass(frozen=True)
class ProbeResult:
    """What a prober could read from one file. Every field may be absent."""

    duration: float | None = None
    bitrate: float | None = None
    tags: tuple[Tag, ...] = ()


@runtime_checkable
class MediaProber(Protocol):
    """Reads track metadata from a local audio file.

    Implementations return None for unreadable or corrupt files instead of
    raising.
    """

    def probe(self, file: Path) -> ProbeResult | None: ...


class FFprobeMediaProber:
    """MediaProber backed by the ffprobe and ffmpeg command line tools."""

    def __init__(
        self,
        ffprobe_bin: str = "ffprobe",
        ffmpeg_bin: str = "ffmpeg",
        timeout: float | None = 30.0,
        extract_artwork: bool = True,
    ) -> None:
        self.ffprobe_bin = ffprobe_bin
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout = timeout
        self.extract_artwork = extract_artwork

    @classmethod
    def from_config(cls, config) -> FFprobeMediaProber:
        return cls(
            ffprobe_bin=config.ffprobe_bin,
            ffmpeg_bin=config.ffmpeg_bin,
            timeout=config.probe_timeout,
            extract_artwork=config.extract_artwork,
        )

    def probe(self, file: Path) -> ProbeResult | None:
        log.debug(f"probe(file={file})")
        try:
            data = ffprobe.read_format(
                file, ffprobe_bin=self.ffprobe_bin, timeout=self.timeout,
            )
        except (ExternalToolError, ValueError, OSError) as e:
            log.warning(f"Failed to probe {file.name}: {e}")
            return None

        key_space = key_space_for(ffprobe.container_of(data))
        tags = list(tags_from_keys(ffprobe.tags_of(data), key_space))

        if self.extract_artwork and ffprobe.has_attached_picture(data):
            artwork = self._artwork(file)
            if artwork:
                tags.append(Tag(ARTWORK_KINDS[key_space], artwork))

        return ProbeResult(
            duration=ffprobe.duration_of(data),
            bitrate=ffprobe.audio_bitrate_of(data),
            tags=tuple(tags),
        )

    def _artwork(self, file: Path) -> bytes | None:
        # A broken cover never invalidates the rest of the probe
        try:
            return ffprobe.extract_attached_picture(
                file, ffmpeg_bin=self.ffmpeg_bin, timeout=self.timeout,
            )
        except (ExternalToolError, OSError) as e:
            log.debug(f"No artwork extracted from {file.name}: {e}")
            return None
