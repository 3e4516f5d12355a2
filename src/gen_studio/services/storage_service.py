"""
对象存储服务 - S3 兼容（Cloudflare R2）
"""
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from gen_studio.core import get_settings, get_logger, Settings

logger = get_logger(__name__)

SUPPORTED_IMAGE_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
]

SUPPORTED_VIDEO_TYPES = [
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/quicktime",
    "video/webm",
    "video/mkv",
]

MIME_TO_EXT = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/ogg": "ogg",
    "video/avi": "avi",
    "video/mov": "mov",
    "video/quicktime": "mov",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
}


@dataclass
class UploadResult:
    """上传结果"""

    key: str
    filename: str
    path: str
    size: int
    content_type: str
    url: str
    upload_time: str
    etag: Optional[str] = None
    skipped: bool = False


def get_file_extension(url: str, mime_type: str) -> str:
    """优先从 URL 取扩展名，取不到再按 MIME 推断"""
    filename = url.split("?")[0].rstrip("/").split("/")[-1]
    if "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext and len(ext) <= 4 and ext.isalnum():
            return ext
    return MIME_TO_EXT.get(mime_type, "bin")


def random_filename(extension: str) -> str:
    return f"{uuid.uuid4().hex}.{extension}"


def is_supported_media_type(content_type: str) -> bool:
    return content_type in SUPPORTED_IMAGE_TYPES or content_type in SUPPORTED_VIDEO_TYPES


def _clean_path(path: str) -> str:
    path = re.sub(r"[^a-zA-Z0-9\-_/.]", "_", path or "")
    return path.strip("/") or "media"


class StorageService:
    """S3 兼容对象存储"""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        settings = settings or get_settings()
        self.bucket = settings.s3_bucket_name
        self.public_base_url = settings.s3_public_base_url.rstrip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url or None,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id or None,
            aws_secret_access_key=settings.s3_secret_access_key or None,
        )

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def file_exists(self, key: str) -> bool:
        """检查对象是否已存在"""
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if code in ("404", "NoSuchKey", "NotFound") or status == 404:
                return False
            raise

    def upload_bytes(
        self,
        data: bytes,
        content_type: str,
        path: str = "media",
        filename: Optional[str] = None,
        skip_existing: bool = False,
    ) -> UploadResult:
        """
        上传二进制内容

        Args:
            data: 文件内容
            content_type: MIME 类型
            path: 存储目录
            filename: 文件名，不传则随机生成
            skip_existing: 对象已存在时跳过上传

        Returns:
            UploadResult
        """
        if not self.bucket:
            raise RuntimeError("未配置对象存储 bucket")

        path = _clean_path(path)
        filename = filename or random_filename(MIME_TO_EXT.get(content_type, "bin"))
        key = f"{path}/{filename}"
        upload_time = datetime.now().isoformat()

        if skip_existing and self.file_exists(key):
            logger.info(f"文件已存在，跳过上传: {key}")
            return UploadResult(
                key=key,
                filename=filename,
                path=path,
                size=len(data),
                content_type=content_type,
                url=self.public_url(key),
                upload_time=upload_time,
                skipped=True,
            )

        response = self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info(f"上传到对象存储成功: {key}, 大小: {len(data)} bytes")

        return UploadResult(
            key=key,
            filename=filename,
            path=path,
            size=len(data),
            content_type=content_type,
            url=self.public_url(key),
            upload_time=upload_time,
            etag=(response or {}).get("ETag"),
        )


# 全局单例
_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """获取存储服务单例"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
