"""Tests for resources.py -- folder, single file, and zip providers."""

import zipfile

import pytest
from conftest import make_bundle

from audiobook_manifest.errors import ResourceError
from audiobook_manifest.manifest import Link
from audiobook_manifest.resources import (
    DirectoryResources,
    ResourceProvider,
    ZipResources,
    open_asset,
)


def make_zip(path, members: dict[str, bytes]):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


class TestDirectoryResources:
    def test_links_relative_and_typed(self, tmp_path):
        root = make_bundle(tmp_path / "Book", ["02.mp3", "disc/01.m4a", "notes.pdf"])
        resources = DirectoryResources(root)
        assert isinstance(resources, ResourceProvider)
        assert resources.links == (
            Link("02.mp3", "audio/mpeg"),
            Link("disc/01.m4a", "audio/mp4"),
            Link("notes.pdf", "application/pdf"),
        )
        assert resources.name == "Book"
        assert resources.media_type is None

    def test_file_and_read(self, tmp_path):
        root = make_bundle(tmp_path / "Book", ["disc/01.mp3"])
        resources = DirectoryResources(root)
        assert resources.file("disc/01.mp3") == root / "disc" / "01.mp3"
        assert resources.read("disc/01.mp3") == b"fake audio"

    def test_missing_href(self, tmp_path):
        resources = DirectoryResources(make_bundle(tmp_path / "Book", ["01.mp3"]))
        with pytest.raises(ResourceError) as exc:
            resources.file("02.mp3")
        assert exc.value.href == "02.mp3"

    def test_single_file(self, tmp_path):
        path = make_bundle(tmp_path, ["Dune.m4b"]) / "Dune.m4b"
        resources = DirectoryResources(path)
        assert resources.links == (Link("Dune.m4b", "audio/mp4"),)
        assert resources.name == "Dune"
        assert resources.media_type == "audio/mp4"
        assert resources.file("Dune.m4b") == path

    def test_missing_root(self, tmp_path):
        with pytest.raises(ResourceError):
            DirectoryResources(tmp_path / "nope")


class TestZipResources:
    def test_links_skip_directories(self, tmp_path):
        path = make_zip(
            tmp_path / "book.zab",
            {"Book/": b"", "Book/01.mp3": b"one", "Book/list.m3u": b"#"},
        )
        with ZipResources(path) as resources:
            assert [l.href for l in resources.links] == ["Book/01.mp3", "Book/list.m3u"]
            assert resources.media_type == "application/audiobook+zip"
            assert resources.name == "book"

    def test_zip_media_type(self, tmp_path):
        path = make_zip(tmp_path / "book.zip", {"01.mp3": b"one"})
        with ZipResources(path) as resources:
            assert resources.media_type == "application/zip"

    def test_file_extracts_once(self, tmp_path):
        path = make_zip(tmp_path / "book.zip", {"Book/01.mp3": b"one"})
        resources = ZipResources(path)
        first = resources.file("Book/01.mp3")
        assert first.read_bytes() == b"one"
        assert resources.file("Book/01.mp3") == first
        extract_dir = first.parent.parent
        resources.close()
        assert not extract_dir.exists()

    def test_read(self, tmp_path):
        path = make_zip(tmp_path / "book.zip", {"01.mp3": b"one"})
        with ZipResources(path) as resources:
            assert resources.read("01.mp3") == b"one"
            with pytest.raises(ResourceError):
                resources.read("02.mp3")

    def test_missing_member(self, tmp_path):
        path = make_zip(tmp_path / "book.zip", {"01.mp3": b"one"})
        with ZipResources(path) as resources:
            with pytest.raises(ResourceError) as exc:
                resources.file("02.mp3")
            assert exc.value.href == "02.mp3"

    def test_href_outside_archive_is_rejected(self, tmp_path):
        secret = make_bundle(tmp_path / "elsewhere", ["secret.mp3"]) / "secret.mp3"
        path = make_zip(tmp_path / "book.zip", {"01.mp3": b"one"})
        with ZipResources(path) as resources:
            resources.file("01.mp3")
            escape = "../" * 32 + secret.as_posix().lstrip("/")
            with pytest.raises(ResourceError) as exc:
                resources.file(escape)
            assert exc.value.href == escape

    def test_dotdot_member_stays_in_extract_dir(self, tmp_path):
        path = make_zip(tmp_path / "book.zip", {"01.mp3": b"one", "../evil.mp3": b"x"})
        with ZipResources(path) as resources:
            inside = resources.file("01.mp3")
            evil = resources.file("../evil.mp3")
            assert evil.read_bytes() == b"x"
            assert evil.resolve().is_relative_to(inside.parent.resolve())

    def test_corrupt_archive(self, tmp_path):
        path = tmp_path / "book.zip"
        path.write_bytes(b"not a zip")
        with pytest.raises(ResourceError, match="Unreadable archive"):
            ZipResources(path)


class TestOpenAsset:
    def test_directory(self, tmp_path):
        assert isinstance(open_asset(make_bundle(tmp_path / "B", ["a.mp3"])), DirectoryResources)

    def test_archive(self, tmp_path):
        path = make_zip(tmp_path / "book.ZAB", {"01.mp3": b"one"})
        resources = open_asset(path)
        assert isinstance(resources, ZipResources)
        resources.close()

    def test_audio_file(self, tmp_path):
        path = make_bundle(tmp_path, ["a.mp3"]) / "a.mp3"
        assert isinstance(open_asset(path), DirectoryResources)

    def test_missing(self, tmp_path):
        with pytest.raises(ResourceError, match="No such file"):
            open_asset(tmp_path / "missing")
