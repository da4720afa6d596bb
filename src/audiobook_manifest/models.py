"""Core enums, constants, and media type tables for audiobook manifests.

Enums:
    MediaType -- Media types the parser knows about (audio formats, the
                 audiobook archive, plain zip, common ancillary documents).
    Profile   -- Publication profiles a manifest can conform to.
"""

from enum import StrEnum
from pathlib import PurePosixPath


def is_audio(media_type: str) -> bool:
    """True when the top-level type of ``media_type`` is ``audio``."""
    return media_type.split("/", 1)[0].strip().lower() == "audio"


class MediaType(StrEnum):
    ZAB = "application/audiobook+zip"
    ZIP = "application/zip"
    BINARY = "application/octet-stream"

    MP3 = "audio/mpeg"
    MP4 = "audio/mp4"
    AAC = "audio/aac"
    FLAC = "audio/flac"
    OGG = "audio/ogg"
    OPUS = "audio/opus"
    WAV = "audio/wav"
    AIFF = "audio/aiff"
    WEBM = "audio/webm"
    WMA = "audio/x-ms-wma"

    PDF = "application/pdf"
    EPUB = "application/epub+zip"
    HTML = "text/html"
    TEXT = "text/plain"
    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"

    @property
    def is_audio(self) -> bool:
        return is_audio(self)


class Profile(StrEnum):
    AUDIOBOOK = "https://readium.org/webpub-manifest/profiles/audiobook"


MEDIA_TYPES: dict[str, MediaType] = {
    ".zab": MediaType.ZAB,
    ".zip": MediaType.ZIP,
    ".mp3": MediaType.MP3,
    ".m4a": MediaType.MP4,
    ".m4b": MediaType.MP4,
    ".mp4": MediaType.MP4,
    ".aac": MediaType.AAC,
    ".flac": MediaType.FLAC,
    ".ogg": MediaType.OGG,
    ".oga": MediaType.OGG,
    ".opus": MediaType.OPUS,
    ".wav": MediaType.WAV,
    ".aif": MediaType.AIFF,
    ".aiff": MediaType.AIFF,
    ".weba": MediaType.WEBM,
    ".wma": MediaType.WMA,
    ".pdf": MediaType.PDF,
    ".epub": MediaType.EPUB,
    ".htm": MediaType.HTML,
    ".html": MediaType.HTML,
    ".xhtml": MediaType.HTML,
    ".txt": MediaType.TEXT,
    ".jpg": MediaType.JPEG,
    ".jpeg": MediaType.JPEG,
    ".png": MediaType.PNG,
    ".gif": MediaType.GIF,
    ".webp": MediaType.WEBP,
}

AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    ext for ext, media_type in MEDIA_TYPES.items() if media_type.is_audio
)

# Archive containers that can hold a bundle of audio resources
ARCHIVE_EXTENSIONS: frozenset[str] = frozenset({".zab", ".zip"})

# Playlist, cue and companion text files that may ship alongside the audio
IGNORED_EXTENSIONS: frozenset[str] = frozenset(
    {
        "asx",
        "bio",
        "m3u",
        "m3u8",
        "pla",
        "pls",
        "smil",
        "txt",
        "vlc",
        "wpl",
        "xspf",
        "zpl",
    }
)

IGNORED_FILENAMES: frozenset[str] = frozenset({"Thumbs.db"})


def media_type_for(href: str) -> str:
    """Guess a media type from the href extension.

    Unknown extensions map to ``application/octet-stream``.
    """
    suffix = PurePosixPath(href).suffix.lower()
    return str(MEDIA_TYPES.get(suffix, MediaType.BINARY))
