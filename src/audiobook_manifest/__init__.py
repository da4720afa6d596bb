"""Audiobook Manifest -- build publication manifests from bundles of audio files.

Core modules:
    config     -- Parser configuration via pydantic-settings (AUDIOBOOK_* env vars)
    cli        -- Click CLI entry point, prints the manifest as JSON
    parser     -- AudioParser: classify, draft, augment, assemble
    classifier -- Audiobook acceptance and default reading order. Only audio
                  and ignorable companions (playlists, hidden files) are allowed.
    augmentor  -- Per-track enrichment and publication metadata merging
    tags       -- Tag kinds, ffprobe key tables, and precedence lists
    probe      -- MediaProber protocol and its ffprobe-backed implementation
    ffprobe    -- ffprobe/ffmpeg subprocess wrappers. Raise ExternalToolError on
                  tool failure; the prober turns that into "no metadata".
    resources  -- Folder, single file, and zip/zab resource providers
    cover      -- Artwork decoding (Pillow) and the generated cover service
    locator    -- Time-based locators over the reading order
    manifest   -- Immutable manifest types and JSON rendering
"""

from .parser import AudioParser, PublicationBuilder, try_parse

__all__ = ["AudioParser", "PublicationBuilder", "try_parse"]
