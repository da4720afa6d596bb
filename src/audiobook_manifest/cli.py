"""CLI entry point for the audiobook manifest builder."""

import sys
from pathlib import Path

import click
from loguru import logger

from .augmentor import NullManifestAugmentor
from .config import ParserConfig
from .cover import image_format_for
from .errors import ResourceError
from .parser import AudioParser, try_parse

log = logger.bind(stage="cli")

EXIT_NOT_APPLICABLE = 2


def _find_config_file() -> Path | None:
    """Look for .env in cwd."""
    candidate = Path.cwd() / ".env"
    return candidate if candidate.is_file() else None


@click.command()
@click.argument("source_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the manifest JSON to this file instead of stdout.",
)
@click.option(
    "--cover",
    "cover_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Save the embedded cover art (format from the extension).",
)
@click.option(
    "--no-probe", is_flag=True, help="Skip reading embedded metadata from tracks."
)
@click.option(
    "-j", "--jobs", type=click.IntRange(min=1), default=None,
    help="Number of tracks to probe in parallel.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to .env file.",
)
def main(
    source_path: Path,
    output: Path | None,
    cover_path: Path | None,
    no_probe: bool,
    jobs: int | None,
    verbose: bool,
    config_file: Path | None,
) -> None:
    """Build a publication manifest for a folder or archive of audio files."""
    config_kwargs: dict = {}
    if verbose:
        config_kwargs["log_level"] = "DEBUG"
    if jobs is not None:
        config_kwargs["max_parallel_probes"] = jobs

    env_file = config_file or _find_config_file()
    config = ParserConfig(_env_file=env_file, **config_kwargs)
    config.setup_logging()
    log.debug(f"Loaded env from {env_file}" if env_file else "No .env found")

    parser = (
        AudioParser(NullManifestAugmentor())
        if no_probe
        else AudioParser.from_config(config)
    )

    try:
        builder = try_parse(source_path.resolve(), parser)
    except ResourceError as e:
        raise click.ClickException(str(e)) from e

    if builder is None:
        click.echo(f"Not an audiobook: {source_path}", err=True)
        sys.exit(EXIT_NOT_APPLICABLE)

    try:
        document = builder.manifest.to_json()
        if output is not None:
            output.write_text(document + "\n", encoding="utf-8")
            log.info(f"Wrote manifest to {output}")
        else:
            click.echo(document)

        if cover_path is not None:
            cover = builder.cover_service()
            if cover is None:
                click.echo("No cover art found", err=True)
            else:
                try:
                    data = cover.to_bytes(image_format_for(cover_path))
                except (ValueError, KeyError, OSError) as e:
                    raise click.ClickException(
                        f"Cannot write cover to {cover_path}: {e}"
                    ) from e
                cover_path.write_bytes(data)
                log.info(f"Wrote cover to {cover_path}")
    finally:
        builder.resources.close()
