"""
媒体服务测试
"""
import asyncio

import pytest
from botocore.exceptions import ClientError
from sqlmodel import Session, select

from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import Media
from gen_studio.services.http_client import DownloadedFile
from gen_studio.services.media_service import to_media_aspect_ratio
from gen_studio.services.storage_service import (
    StorageService,
    get_file_extension,
    is_supported_media_type,
)


class TestGetFileExtension:
    def test_from_url(self):
        assert get_file_extension("https://cdn.example.com/a/out-0.PNG?sig=1", "image/webp") == "png"

    def test_from_mime(self):
        assert get_file_extension("https://g/files/v1:download?alt=media", "video/mp4") == "mp4"

    def test_unknown(self):
        assert get_file_extension("https://cdn.example.com/blob", "application/octet-stream") == "bin"


def test_is_supported_media_type():
    assert is_supported_media_type("image/webp")
    assert is_supported_media_type("video/mp4")
    assert not is_supported_media_type("text/html")


def test_convert_media(media_service, http_client, storage, test_db):
    url = "https://replicate.delivery/a/out-0.webp"
    http_client.set_download(url, DownloadedFile(content=b"webpdata", content_type="image/webp"))

    owned_url = asyncio.run(
        media_service.convert_media(
            url, path="generator/record", supabase_id="user-1", aspect_ratio="1:1"
        )
    )

    assert owned_url.startswith("https://media.example.com/generator/record/")
    assert list(storage.objects.values()) == [b"webpdata"]
    with Session(test_db) as session:
        media = session.exec(select(Media)).one()
    assert media.url == owned_url
    assert media.media_type == "image"
    assert media.type == "image/webp"
    assert media.meta["size"] == 8
    assert media.meta["original_url"] == url


def test_convert_media_download_failure(media_service, test_db):
    with pytest.raises(GenerationError):
        asyncio.run(media_service.convert_media("https://replicate.delivery/missing.webp"))

    with Session(test_db) as session:
        assert session.exec(select(Media)).all() == []


def test_convert_media_rejects_unsupported_type(media_service, http_client, storage, test_db):
    url = "https://replicate.delivery/a/error-page"
    http_client.set_download(url, DownloadedFile(content=b"<html></html>", content_type="text/html"))

    with pytest.raises(GenerationError) as exc_info:
        asyncio.run(media_service.convert_media(url, path="generator/record"))

    assert exc_info.value.kind == ErrorKind.THIRD_PARTY
    assert "text/html" in exc_info.value.message
    assert storage.objects == {}
    with Session(test_db) as session:
        assert session.exec(select(Media)).all() == []


class TestToMediaAspectRatio:
    def test_colon_ratio(self):
        assert to_media_aspect_ratio("16:9") == "16/9"
        assert to_media_aspect_ratio("1:1") == "1/1"

    def test_already_slash(self):
        assert to_media_aspect_ratio("4/3") == "4/3"

    def test_invalid_or_missing(self):
        assert to_media_aspect_ratio(None) is None
        assert to_media_aspect_ratio("") is None
        assert to_media_aspect_ratio("wide") is None


class TestUpdateAspectRatio:
    def _seed(self, test_db, url):
        with Session(test_db) as session:
            session.add(Media(url=url, media_type="image"))
            session.commit()

    def test_update(self, media_service, test_db):
        url = "https://media.example.com/generator/record/a.webp"
        self._seed(test_db, url)

        assert media_service.update_media_aspect_ratio(url, "16/9") is True
        with Session(test_db) as session:
            assert session.exec(select(Media)).one().aspect_ratio == "16/9"

    def test_missing_media(self, media_service):
        assert media_service.update_media_aspect_ratio("https://media.example.com/none.webp", "4/3") is False

    def test_invalid_format(self, media_service):
        with pytest.raises(ValueError):
            media_service.update_media_aspect_ratio("https://media.example.com/a.webp", "16:9")


class FakeS3Client:
    def __init__(self, existing=()):
        self.existing = set(existing)
        self.put_calls = []

    def head_object(self, Bucket, Key):
        if Key not in self.existing:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {}

    def put_object(self, **kwargs):
        self.put_calls.append(kwargs)
        return {"ETag": '"abc"'}


class TestStorageService:
    def test_upload_bytes(self, settings):
        client = FakeS3Client()
        service = StorageService(settings, client=client)

        result = service.upload_bytes(b"data", "image/png", path="generator/record", filename="a.png")

        assert result.key == "generator/record/a.png"
        assert result.url == "https://media.example.com/generator/record/a.png"
        assert result.etag == '"abc"'
        assert client.put_calls[0]["Bucket"] == "test-bucket"
        assert client.put_calls[0]["ContentType"] == "image/png"

    def test_skip_existing(self, settings):
        client = FakeS3Client(existing={"generator/record/a.png"})
        service = StorageService(settings, client=client)

        result = service.upload_bytes(
            b"data", "image/png", path="generator/record", filename="a.png", skip_existing=True
        )

        assert result.skipped is True
        assert client.put_calls == []
