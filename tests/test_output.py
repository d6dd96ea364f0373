"""Tests for output packaging and storage backends."""

import asyncio
import base64
import re
from datetime import datetime, timezone

import pytest

from autocard.config import Settings
from autocard.modules.render.output import (
    OutputArtifact,
    OutputPackager,
    generate_filename,
    sanitize_filename,
)
from autocard.modules.render.storage import (
    LocalStorage,
    S3Storage,
    build_storage,
)
from autocard.shared.errors import StorageError

from .conftest import FAKE_PNG, MemoryStorage

GENERATED = re.compile(r"^card-\d{8}-\d{6}-[0-9a-f]{6}\.png$")


class TestFilenames:

    @pytest.mark.parametrize("raw,expected", [
        ("summer sale", "summer-sale.png"),
        ("summer.png", "summer.png"),
        ("../../etc/passwd", "passwd.png"),
        ("C:\\Users\\me\\card one.PNG", "card-one.png"),
        ("пост", None),
        ("", None),
        (None, None),
        ("...", None),
    ])
    def test_sanitize(self, raw, expected) -> None:
        name = sanitize_filename(raw)
        if expected is None:
            assert GENERATED.match(name)
        else:
            assert name == expected

    def test_long_names_are_capped(self) -> None:
        assert len(sanitize_filename("a" * 500)) == 104

    def test_generated_name_uses_timestamp(self) -> None:
        name = generate_filename(datetime(2026, 10, 19, 15, 30, 12, tzinfo=timezone.utc))
        assert name.startswith("card-20261019-153012-")


class TestOutputArtifact:

    def test_requires_exactly_one_representation(self) -> None:
        with pytest.raises(ValueError):
            OutputArtifact(mode="url", filename="a.png")
        with pytest.raises(ValueError):
            OutputArtifact(mode="url", filename="a.png", url="u", data_url="d")

    def test_content_disposition(self) -> None:
        artifact = OutputArtifact(mode="binary", filename="a.png", content=b"x", disposition="attachment")
        assert artifact.content_disposition == 'attachment; filename="a.png"'


class TestOutputPackager:

    def test_binary(self) -> None:
        artifact = asyncio.run(OutputPackager().package(FAKE_PNG, mode="binary", filename="x"))
        assert artifact.mode == "binary"
        assert artifact.content == FAKE_PNG
        assert artifact.filename == "x.png"
        assert artifact.disposition == "inline"

    def test_binary_download_is_attachment(self) -> None:
        artifact = asyncio.run(OutputPackager().package(FAKE_PNG, mode="binary", download=True))
        assert artifact.disposition == "attachment"

    def test_stored_url(self) -> None:
        storage = MemoryStorage()
        packager = OutputPackager(storage, prefix="cards/")

        artifact = asyncio.run(packager.package(FAKE_PNG, filename="promo"))

        assert artifact.mode == "url"
        assert artifact.url == "https://cdn.example.com/cards/promo.png"
        assert storage.objects["cards/promo.png"] == FAKE_PNG
        assert artifact.data_url is None

    def test_no_storage_is_inline(self) -> None:
        artifact = asyncio.run(OutputPackager(None).package(FAKE_PNG))
        assert artifact.mode == "dataUrl"
        assert artifact.data_url == "data:image/png;base64," + base64.b64encode(FAKE_PNG).decode()

    def test_storage_failure_falls_back_to_inline(self) -> None:
        artifact = asyncio.run(OutputPackager(MemoryStorage(fail=True)).package(FAKE_PNG))
        assert artifact.mode == "dataUrl"
        assert artifact.url is None
        assert artifact.data_url.startswith("data:image/png;base64,")

    def test_unexpected_storage_error_falls_back_too(self) -> None:
        class Exploding(MemoryStorage):
            async def put(self, key, data, content_type):
                raise KeyError("bug")

        artifact = asyncio.run(OutputPackager(Exploding()).package(FAKE_PNG))
        assert artifact.mode == "dataUrl"


class FakeS3Client:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.puts: list[dict] = []

    def put_object(self, **kwargs):
        if self.fail:
            raise RuntimeError("AccessDenied")
        self.puts.append(kwargs)
        return {"ETag": '"abc"'}


class TestStorage:

    def test_local_storage_writes_atomically(self, temp_dir) -> None:
        storage = LocalStorage(temp_dir, "https://static.example.com/")
        url = asyncio.run(storage.put("cards/a.png", FAKE_PNG, "image/png"))

        assert url == "https://static.example.com/cards/a.png"
        assert (temp_dir / "cards" / "a.png").read_bytes() == FAKE_PNG
        assert not list((temp_dir / "cards").glob(".tmp_*"))

    def test_local_storage_needs_public_url(self, temp_dir) -> None:
        with pytest.raises(StorageError):
            asyncio.run(LocalStorage(temp_dir, "").put("a.png", FAKE_PNG, "image/png"))

    def test_local_storage_rejects_escaping_keys(self, temp_dir) -> None:
        storage = LocalStorage(temp_dir / "root", "https://static.example.com")
        with pytest.raises(StorageError):
            asyncio.run(storage.put("../outside.png", FAKE_PNG, "image/png"))

    def test_s3_put_and_public_url(self) -> None:
        client = FakeS3Client()
        storage = S3Storage("bucket", endpoint_url="http://minio:9000", client=client)

        url = asyncio.run(storage.put("cards/a.png", FAKE_PNG, "image/png"))

        assert url == "http://minio:9000/bucket/cards/a.png"
        assert client.puts == [{
            "Bucket": "bucket", "Key": "cards/a.png", "Body": FAKE_PNG, "ContentType": "image/png",
        }]

    def test_s3_public_base_url_wins(self) -> None:
        storage = S3Storage("bucket", public_base_url="https://cdn.example.com/", client=FakeS3Client())
        assert storage.public_url("k.png") == "https://cdn.example.com/k.png"

    def test_s3_default_url(self) -> None:
        storage = S3Storage("bucket", region="eu-west-1", client=FakeS3Client())
        assert storage.public_url("k.png") == "https://bucket.s3.eu-west-1.amazonaws.com/k.png"

    def test_s3_failure_is_storage_error(self) -> None:
        storage = S3Storage("bucket", client=FakeS3Client(fail=True))
        with pytest.raises(StorageError):
            asyncio.run(storage.put("a.png", FAKE_PNG, "image/png"))

    def test_build_storage(self, temp_dir) -> None:
        assert build_storage(Settings(storage_backend="none")) is None

        local = build_storage(Settings(
            storage_backend="local", storage_dir=temp_dir, storage_public_base_url="https://s.example.com",
        ))
        assert isinstance(local, LocalStorage)

        # Missing bucket: storage is disabled rather than failing requests
        assert build_storage(Settings(storage_backend="s3", s3_bucket="")) is None
