from urllib.parse import parse_qs, urlsplit

import pytest
from ordering.slip.storage.local_storage import LocalSlipStorage


@pytest.fixture()
def storage(tmp_path):
    return LocalSlipStorage(root=str(tmp_path), url_base="https://shop.example/slips/", secret="s3cret")


def test_upload_writes_file(storage, tmp_path):
    result = storage.upload("ORD-1/abc.png", b"png-bytes", "image/png")
    assert result.success
    assert (tmp_path / "ORD-1" / "abc.png").read_bytes() == b"png-bytes"


def test_upload_does_not_overwrite(storage):
    storage.upload("ORD-1/abc.png", b"first", "image/png")
    result = storage.upload("ORD-1/abc.png", b"second", "image/png")
    assert not result.success


def test_path_cannot_escape_root(storage):
    result = storage.upload("../outside.png", b"x", "image/png")
    assert not result.success
    assert "escapes" in result.error


def test_signed_url_verifies(storage):
    storage.upload("ORD-1/abc.png", b"x", "image/png")

    result = storage.create_timed_access_url("ORD-1/abc.png", 60)

    assert result.success
    parts = urlsplit(result.url)
    assert result.url.startswith("https://shop.example/slips/ORD-1/abc.png?")
    query = parse_qs(parts.query)
    expires, signature = int(query["expires"][0]), query["signature"][0]
    assert storage.verify_signature("ORD-1/abc.png", expires, signature)
    assert not storage.verify_signature("ORD-2/abc.png", expires, signature)
    assert not storage.verify_signature("ORD-1/abc.png", expires, signature, now=expires + 1)


def test_url_for_missing_object(storage):
    assert not storage.create_timed_access_url("ORD-1/missing.png", 60).success


def test_url_requires_secret(tmp_path, monkeypatch):
    monkeypatch.delenv("SLIP_URL_SECRET", raising=False)
    storage = LocalSlipStorage(root=str(tmp_path))
    storage.upload("a.png", b"x", "image/png")
    result = storage.create_timed_access_url("a.png", 60)
    assert not result.success
    assert "SLIP_URL_SECRET" in result.error
