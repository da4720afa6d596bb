"""Shared fixtures: a scripted media prober and small bundle builders."""

from io import BytesIO
from pathlib import Path

import pytest
from loguru import logger
from PIL import Image

from audiobook_manifest.probe import ProbeResult
from audiobook_manifest.tags import Tag, TagKind


class FakeProber:
    """MediaProber answering from a dict keyed by file name."""

    def __init__(self, results: dict[str, ProbeResult | None] | None = None) -> None:
        self.results = results or {}
        self.calls: list[Path] = []

    def probe(self, file: Path) -> ProbeResult | None:
        self.calls.append(file)
        return self.results.get(file.name)


def track(
    duration: float | None = None,
    bitrate: float | None = None,
    **tags: str | bytes,
) -> ProbeResult:
    """ProbeResult with tags given as TagKind member names, e.g. COMMON_ARTIST="x"."""
    return ProbeResult(
        duration=duration,
        bitrate=bitrate,
        tags=tuple(Tag(TagKind[name], value) for name, value in tags.items()),
    )


def image_bytes(fmt: str = "PNG", size: tuple[int, int] = (4, 3)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


def make_bundle(root: Path, names: list[str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"fake audio")
    return root


@pytest.fixture
def fake_prober():
    return FakeProber()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove AUDIOBOOK_* env vars so tests see the defaults."""
    for var in (
        "AUDIOBOOK_FFPROBE_BIN",
        "AUDIOBOOK_FFMPEG_BIN",
        "AUDIOBOOK_PROBE_TIMEOUT",
        "AUDIOBOOK_MAX_PARALLEL_PROBES",
        "AUDIOBOOK_EXTRACT_ARTWORK",
        "AUDIOBOOK_VERBOSE",
        "AUDIOBOOK_LOG_LEVEL",
        "AUDIOBOOK_LOG_DIR",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logger():
    """Drop sinks added by setup_logging (CliRunner closes their streams)."""
    yield
    logger.remove()
