"""Cover art decoding and the generated cover service."""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO
from pathlib import Path

from loguru import logger
from PIL import Image, UnidentifiedImageError

log = logger.bind(stage="cover")


def decode_image(data: bytes | None) -> Image.Image | None:
    """Decode artwork bytes into a fully loaded image, None on failure."""
    if not data:
        return None
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.copy()
    except (
        UnidentifiedImageError,
        OSError,
        SyntaxError,
        ValueError,
        Image.DecompressionBombError,
    ) as e:
        log.debug(f"Artwork is not a decodable image ({len(data)} bytes): {e}")
        return None


def image_format_for(path: Path) -> str:
    """Pillow format name for the extension of ``path``, PNG when it has none.

    Raises ValueError for extensions Pillow has no format for.
    """
    suffix = Path(path).suffix.lower()
    if not suffix:
        return "PNG"
    fmt = Image.registered_extensions().get(suffix)
    if fmt is None:
        raise ValueError(f"Unknown image extension: {suffix}")
    return fmt


class GeneratedCoverService:
    """Serves a cover image that was resolved while parsing."""

    def __init__(self, cover: Image.Image) -> None:
        self._cover = cover

    @classmethod
    def make_factory(cls, cover: Image.Image) -> Callable[[], GeneratedCoverService]:
        return lambda: cls(cover)

    def cover(self) -> Image.Image:
        return self._cover

    def cover_fitting(self, max_size: tuple[int, int]) -> Image.Image:
        """Return a copy scaled down to fit ``max_size``, keeping the aspect ratio."""
        img = self._cover.copy()
        img.thumbnail(max_size)
        return img

    def to_bytes(self, format: str = "PNG") -> bytes:
        img = self._cover
        if format.upper() in ("JPEG", "JPG") and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        buffer = BytesIO()
        img.save(buffer, format="JPEG" if format.upper() == "JPG" else format.upper())
        return buffer.getvalue()
