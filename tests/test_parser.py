"""Tests for parser.py -- end-to-end parsing with a scripted prober."""

import struct
import zipfile

import pytest
from conftest import FakeProber, image_bytes, make_bundle, track

from audiobook_manifest.augmentor import NullManifestAugmentor, ProbingManifestAugmentor
from audiobook_manifest.config import ParserConfig
from audiobook_manifest.errors import ResourceError
from audiobook_manifest.models import MediaType
from audiobook_manifest.parser import AudioParser, try_parse
from audiobook_manifest.probe import FFprobeMediaProber
from audiobook_manifest.resources import DirectoryResources


def parser_for(results: dict) -> AudioParser:
    return AudioParser(ProbingManifestAugmentor(FakeProber(results)))


def zab_with_damaged_member(path, damage):
    """Write a two-track .zab and let ``damage`` rewrite the raw archive bytes."""
    audio = bytes((i * 7919) % 256 for i in range(8192))
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("01.mp3", audio)
        zf.writestr("02.mp3", audio)
        info = zf.getinfo("02.mp3")
    data = bytearray(path.read_bytes())
    damage(data, info)
    path.write_bytes(bytes(data))
    return path


def flip_compressed_bytes(data: bytearray, info: zipfile.ZipInfo) -> None:
    offset = info.header_offset
    name_len, extra_len = struct.unpack("<HH", data[offset + 26 : offset + 30])
    start = offset + 30 + name_len + extra_len + info.compress_size // 2
    for i in range(start, start + 10):
        data[i] ^= 0xFF


def mark_deflate64(data: bytearray, info: zipfile.ZipInfo) -> None:
    central = data.rindex(b"PK\x01\x02")
    data[central + 10 : central + 12] = struct.pack("<H", 9)


class TestAudioParser:
    def test_scenario_ignores_text(self, tmp_path):
        root = make_bundle(tmp_path / "Book", ["02 track.mp3", "01 track.mp3", "cover.txt"])
        builder = AudioParser(NullManifestAugmentor()).parse(DirectoryResources(root))
        assert [l.href for l in builder.manifest.reading_order] == [
            "01 track.mp3",
            "02 track.mp3",
        ]
        assert builder.media_type == MediaType.ZAB

    def test_scenario_pdf_not_applicable(self, tmp_path):
        root = make_bundle(tmp_path / "Book", ["chapter.mp3", "notes.pdf"])
        assert AudioParser(NullManifestAugmentor()).parse(DirectoryResources(root)) is None

    def test_draft_title_is_folder_name(self, tmp_path):
        root = make_bundle(tmp_path / "The Hobbit", ["01.mp3"])
        builder = AudioParser(NullManifestAugmentor()).parse(DirectoryResources(root))
        assert builder.manifest.metadata.title == "The Hobbit"

    def test_draft_title_from_single_subfolder(self, tmp_path):
        root = make_bundle(tmp_path / "download", ["The Hobbit/01.mp3", "The Hobbit/02.mp3"])
        builder = AudioParser(NullManifestAugmentor()).parse(DirectoryResources(root))
        assert builder.manifest.metadata.title == "The Hobbit"

    def test_track_titles_do_not_name_the_publication(self, tmp_path):
        root = make_bundle(tmp_path / "Asset", ["1.mp3", "2.mp3"])
        parser = parser_for({"1.mp3": track(TRACK_TITLE="A"), "2.mp3": track(TRACK_TITLE="B")})
        builder = parser.parse(DirectoryResources(root))
        assert builder.manifest.metadata.title == "Asset"
        assert [l.title for l in builder.manifest.reading_order] == ["A", "B"]

    def test_one_failed_probe_makes_duration_unknown(self, tmp_path):
        root = make_bundle(tmp_path / "Asset", ["1.mp3", "2.mp3", "3.mp3"])
        parser = parser_for({"1.mp3": track(10.0), "2.mp3": None, "3.mp3": track(20.0)})
        builder = parser.parse(DirectoryResources(root))
        assert builder.manifest.metadata.duration is None
        assert len(builder.manifest.reading_order) == 3

    def test_known_durations_sum(self, tmp_path):
        root = make_bundle(tmp_path / "Asset", ["1.mp3", "2.mp3"])
        parser = parser_for({"1.mp3": track(10.0), "2.mp3": track(20.0)})
        builder = parser.parse(DirectoryResources(root))
        assert builder.manifest.metadata.duration == 30.0
        locator = builder.locator_service().locate_progression(0.5)
        assert locator.href == "2.mp3"

    def test_cover_factory(self, tmp_path):
        root = make_bundle(tmp_path / "Asset", ["1.mp3"])
        parser = parser_for({"1.mp3": track(1.0, ID3_ATTACHED_PICTURE=image_bytes())})
        builder = parser.parse(DirectoryResources(root))
        assert builder.cover_factory is not None
        assert builder.cover_service().cover().size == (4, 3)

    def test_no_cover(self, tmp_path):
        root = make_bundle(tmp_path / "Asset", ["1.mp3"])
        builder = parser_for({"1.mp3": track(1.0)}).parse(DirectoryResources(root))
        assert builder.cover_factory is None
        assert builder.cover_service() is None

    def test_default_augmentor_uses_ffprobe(self):
        parser = AudioParser()
        assert isinstance(parser.augmentor, ProbingManifestAugmentor)
        assert isinstance(parser.augmentor.prober, FFprobeMediaProber)

    def test_from_config(self):
        config = ParserConfig(_env_file=None, max_parallel_probes=3, ffprobe_bin="fp")
        parser = AudioParser.from_config(config)
        assert parser.augmentor.max_workers == 3
        assert parser.augmentor.prober.ffprobe_bin == "fp"


class TestTryParse:
    def test_zab_archive(self, tmp_path):
        path = tmp_path / "book.zab"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("Dune/01.mp3", b"one")
            zf.writestr("Dune/extras.pdf", b"%PDF")
        builder = try_parse(path, parser_for({"01.mp3": track(5.0)}))
        try:
            assert [l.href for l in builder.manifest.reading_order] == ["Dune/01.mp3"]
            assert builder.manifest.metadata.title == "Dune"
            assert builder.manifest.metadata.duration == 5.0
        finally:
            builder.resources.close()

    def test_plain_zip_with_pdf_not_applicable(self, tmp_path):
        path = tmp_path / "book.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("01.mp3", b"one")
            zf.writestr("extras.pdf", b"%PDF")
        assert try_parse(path, AudioParser(NullManifestAugmentor())) is None

    def test_single_audio_file(self, tmp_path):
        path = make_bundle(tmp_path, ["Dune.m4b"]) / "Dune.m4b"
        builder = try_parse(path, parser_for({"Dune.m4b": track(60.0, TRACK_TITLE="Dune")}))
        assert builder.manifest.metadata.title == "Dune"
        assert builder.manifest.reading_order[0].href == "Dune.m4b"

    def test_missing_path(self, tmp_path):
        with pytest.raises(ResourceError):
            try_parse(tmp_path / "missing")

    @pytest.mark.parametrize("damage", [flip_compressed_bytes, mark_deflate64])
    def test_damaged_member_is_a_failed_track(self, tmp_path, damage):
        path = zab_with_damaged_member(tmp_path / "book.zab", damage)
        prober = FakeProber({"01.mp3": track(5.0), "02.mp3": track(7.0)})
        builder = try_parse(path, AudioParser(ProbingManifestAugmentor(prober)))
        try:
            order = builder.manifest.reading_order
            assert [l.href for l in order] == ["01.mp3", "02.mp3"]
            assert order[0].duration == 5.0
            assert order[1].duration is None
            assert builder.manifest.metadata.duration is None
        finally:
            builder.resources.close()
