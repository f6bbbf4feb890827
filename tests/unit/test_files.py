from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from did_provider.files import FileReferenceError, LocalFileStore, reference_extension
from tests.mocks.did_api import FakeMediaHost


@pytest.fixture
def store(tmp_path: Path) -> LocalFileStore:
    host = FakeMediaHost(files={"https://media.test/a.jpg": b"jpeg"})
    return LocalFileStore(
        roots={"public": tmp_path / "public", "private": tmp_path / "private"},
        http_client=httpx.Client(transport=host.transport()),
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    ("reference", "expected"),
    [
        ("https://media.test/a/face.PNG?X-Amz-Signature=abc", "PNG"),
        ("public://avatars/face.jpeg", "jpeg"),
        ("/srv/media/voice.mp3", "mp3"),
        ("https://media.test/download", ""),
    ],
)
def test_reference_extension(reference: str, expected: str) -> None:
    assert reference_extension(reference) == expected


@pytest.mark.unit
def test_managed_scheme_maps_to_root(store: LocalFileStore, tmp_path: Path) -> None:
    assert store.resolve_path("public://avatars/face.png") == tmp_path / "public" / "avatars" / "face.png"
    assert store.resolve_path("https://media.test/a.jpg") is None


@pytest.mark.unit
def test_save_then_read_round_trip(store: LocalFileStore, tmp_path: Path) -> None:
    saved = store.save(b"video", "private://out/clip.mp4")

    assert saved == tmp_path / "private" / "out" / "clip.mp4"
    source = store.read("private://out/clip.mp4")
    assert source.data == b"video"
    assert source.path == saved
    assert source.extension == "mp4"


@pytest.mark.unit
def test_read_plain_path(store: LocalFileStore, tmp_path: Path) -> None:
    target = tmp_path / "voice.wav"
    target.write_bytes(b"RIFF")

    assert store.read(str(target)).data == b"RIFF"


@pytest.mark.unit
def test_read_remote_reference(store: LocalFileStore) -> None:
    source = store.read("https://media.test/a.jpg")

    assert source.data == b"jpeg"
    assert source.path is None


@pytest.mark.unit
def test_unknown_scheme_is_rejected(store: LocalFileStore) -> None:
    with pytest.raises(FileReferenceError, match="temporary"):
        store.read("temporary://x.png")


@pytest.mark.unit
def test_missing_files_raise(store: LocalFileStore) -> None:
    with pytest.raises(FileReferenceError):
        store.read("public://missing.png")
    with pytest.raises(FileReferenceError):
        store.read("https://media.test/missing.jpg")


@pytest.mark.unit
def test_references_cannot_escape_their_root(store: LocalFileStore, tmp_path: Path) -> None:
    with pytest.raises(FileReferenceError, match="escapes"):
        store.resolve_path("public://../../escaped.png")
    with pytest.raises(FileReferenceError):
        store.save(b"x", "public://avatars/../../escaped.png")

    assert not (tmp_path / "escaped.png").exists()
    assert store.resolve_path("public://avatars/../face.png") == tmp_path / "public" / "avatars" / ".." / "face.png"
