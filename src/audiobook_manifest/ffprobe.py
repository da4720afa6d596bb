"""FFprobe/FFmpeg subprocess wrappers for audio file inspection."""

import json
import subprocess
from pathlib import Path

from .errors import ExternalToolError


def _run(
    cmd: list[str], tool: str, timeout: float | None, text: bool = True,
) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(cmd, capture_output=True, text=text, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(tool, -1, f"timed out after {exc.timeout}s") from exc
    except FileNotFoundError as exc:
        raise ExternalToolError(tool, 127, f"{cmd[0]} not found") from exc


def _run_ffprobe(
    args: list[str], ffprobe_bin: str = "ffprobe", timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """Run ffprobe with common flags."""
    return _run([ffprobe_bin, "-v", "error"] + args, "ffprobe", timeout)


def read_format(
    file: Path, ffprobe_bin: str = "ffprobe", timeout: float | None = None,
) -> dict:
    """Return ffprobe's JSON description of the container and its streams.

    Raises ExternalToolError when ffprobe fails (corrupt file, missing
    binary) and ValueError when the output is not JSON.
    """
    result = _run_ffprobe(
        ["-show_format", "-show_streams", "-of", "json", str(file)],
        ffprobe_bin=ffprobe_bin,
        timeout=timeout,
    )
    if result.returncode != 0:
        raise ExternalToolError("ffprobe", result.returncode, result.stderr.strip())
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ValueError(f"ffprobe returned invalid JSON for {file}") from exc
    if not isinstance(data, dict) or "format" not in data:
        raise ValueError(f"ffprobe returned no format section for {file}")
    return data


def container_of(data: dict) -> str:
    """Get the container format name, e.g. "mp3" or "mov,mp4,m4a,3gp,3g2,mj2"."""
    return data.get("format", {}).get("format_name", "")


def duration_of(data: dict) -> float | None:
    """Get duration in seconds, None when ffprobe could not tell."""
    raw = data.get("format", {}).get("duration")
    try:
        duration = float(raw)
    except (TypeError, ValueError):
        return None
    return duration if duration >= 0 else None


def _audio_streams(data: dict) -> list[dict]:
    return [s for s in data.get("streams", []) if s.get("codec_type") == "audio"]


def audio_bitrate_of(data: dict) -> float | None:
    """Get the first audio stream's bitrate in bits/sec, None if unknown."""
    streams = _audio_streams(data)
    if not streams:
        return None
    try:
        return float(streams[0]["bit_rate"])
    except (KeyError, TypeError, ValueError):
        return None


def tags_of(data: dict) -> dict[str, str]:
    """Get format-level metadata tags with lowercase keys.

    Common keys: artist, album_artist, title, album, genre, date, comment.
    Stream-level tags of the first audio stream fill in keys the container
    does not carry (Ogg and Opus keep their Vorbis comments there).
    """
    tags: dict[str, str] = {}
    streams = _audio_streams(data)
    sources = [data.get("format", {}).get("tags", {})]
    if streams:
        sources.append(streams[0].get("tags", {}))
    for raw in sources:
        for key, value in raw.items():
            tags.setdefault(key.lower(), value)
    return tags


def has_attached_picture(data: dict) -> bool:
    """Check for an embedded cover (a video stream flagged as attached_pic)."""
    return any(
        s.get("codec_type") == "video"
        and s.get("disposition", {}).get("attached_pic") == 1
        for s in data.get("streams", [])
    )


def extract_attached_picture(
    file: Path, ffmpeg_bin: str = "ffmpeg", timeout: float | None = None,
) -> bytes | None:
    """Extract the raw bytes of the embedded cover, None if there is none."""
    result = _run(
        [
            ffmpeg_bin, "-v", "error", "-i", str(file),
            "-map", "0:v:0", "-c", "copy", "-f", "image2pipe", "-",
        ],
        "ffmpeg",
        timeout,
        text=False,
    )
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", "replace").strip()
        raise ExternalToolError("ffmpeg", result.returncode, stderr)
    return result.stdout or None


def duration_to_timestamp(seconds: float) -> str:
    """Convert seconds to HH:MM:SS."""
    total = int(seconds)
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"
