"""Parser configuration via pydantic-settings (.env + AUDIOBOOK_* env vars)."""

import sys
from pathlib import Path

import psutil
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserConfig(BaseSettings):
    """All parser configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="AUDIOBOOK_",
        extra="ignore",
    )

    # -- External tools --
    ffprobe_bin: str = "ffprobe"
    ffmpeg_bin: str = "ffmpeg"
    probe_timeout: float = 30.0

    # -- Probing --
    max_parallel_probes: int = 0  # 0 = auto (CPU-based)
    extract_artwork: bool = True

    # -- Behavior --
    log_level: str = "INFO"
    log_dir: Path | None = None

    @property
    def probe_workers(self) -> int:
        """Number of tracks to probe concurrently."""
        if self.max_parallel_probes > 0:
            return self.max_parallel_probes
        # ffprobe is I/O bound, a few workers per core is fine
        return max(1, min(8, (psutil.cpu_count() or 1) * 2))

    def setup_logging(self) -> None:
        """Configure loguru for the parser."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "audiobook-manifest.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
