import pytest

from studio.gemini.blobs import LocalBlobStore
from studio.utils.errors import NotFoundError


def test_memory_blob_lifecycle(tmp_path) -> None:
    store = LocalBlobStore()

    url = store.create_object_url(b"video", "video/mp4")

    assert url.startswith("blob:")
    assert url in store
    assert store.read(url) == b"video"
    assert store.mime_type(url) == "video/mp4"

    saved = store.save(url, tmp_path / "out.mp4")
    assert saved.read_bytes() == b"video"

    store.revoke(url)
    assert url not in store
    assert len(store) == 0


def test_urls_are_unique() -> None:
    store = LocalBlobStore()

    first = store.create_object_url(b"a", "video/mp4")
    second = store.create_object_url(b"a", "video/mp4")

    assert first != second
    assert len(store) == 2


def test_directory_backed_blobs(tmp_path) -> None:
    store = LocalBlobStore(tmp_path / "blobs")

    url = store.create_object_url(b"video", "video/mp4")
    files = list((tmp_path / "blobs").iterdir())

    assert len(files) == 1
    assert files[0].suffix == ".mp4"
    assert store.read(url) == b"video"

    store.revoke(url)
    assert not files[0].exists()


def test_unknown_reference() -> None:
    store = LocalBlobStore()

    with pytest.raises(NotFoundError) as exc_info:
        store.read("blob:missing")
    assert exc_info.value.status_code == 404

    store.revoke("blob:missing")
