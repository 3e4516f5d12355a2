"""
媒体服务 - 生成结果转存到自有存储
"""
import asyncio
import re
from datetime import datetime
from typing import Optional
from sqlmodel import Session, select

from gen_studio.core import get_logger
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.core.database import engine as default_engine
from gen_studio.models import Media, MediaType, UploadSource
from gen_studio.services.http_client import ThirdPartyClient, get_third_party_client
from gen_studio.services.storage_service import (
    StorageService,
    get_file_extension,
    get_storage_service,
    is_supported_media_type,
    random_filename,
)

logger = get_logger(__name__)

ASPECT_RATIO_PATTERN = re.compile(r"^\d+(\.\d+)?/\d+(\.\d+)?$")


def to_media_aspect_ratio(ratio: Optional[str]) -> Optional[str]:
    """
    生成参数里的宽高比（16:9）转成 medias 表的格式（16/9）

    格式不合法时返回 None，不写入
    """
    if not ratio:
        return None
    value = ratio.strip().replace(":", "/")
    return value if ASPECT_RATIO_PATTERN.match(value) else None


class MediaService:
    """
    媒体服务

    负责下载第三方生成的文件、上传到对象存储并写入 medias 表
    """

    def __init__(
        self,
        engine=None,
        http_client: Optional[ThirdPartyClient] = None,
        storage: Optional[StorageService] = None,
    ):
        self.engine = engine or default_engine
        self.http_client = http_client or get_third_party_client()
        self._storage = storage

    @property
    def storage(self) -> StorageService:
        # 延迟创建，避免没有存储配置时影响其他功能
        if self._storage is None:
            self._storage = get_storage_service()
        return self._storage

    async def convert_media(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        path: str = "media",
        supabase_id: Optional[str] = None,
        record_id: Optional[str] = None,
        task_id: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
        skip_existing: bool = False,
    ) -> str:
        """
        下载媒体资源并转存

        Args:
            url: 第三方媒体URL
            headers: 下载时携带的认证头
            path: 存储目录
            supabase_id / record_id / task_id: 归属信息
            aspect_ratio: 宽高比
            skip_existing: 对象已存在时跳过上传

        Returns:
            自有存储的公开访问URL

        Raises:
            任一步骤失败都会抛出，由调用方决定是否忽略
        """
        logger.info(f"开始转存媒体资源: {url}, record_id={record_id}")

        downloaded = await self.http_client.download(url, headers=headers)
        if not is_supported_media_type(downloaded.content_type):
            raise GenerationError(
                ErrorKind.THIRD_PARTY, f"不支持的媒体类型: {downloaded.content_type}"
            )

        extension = get_file_extension(url, downloaded.content_type)
        upload = await asyncio.to_thread(
            self.storage.upload_bytes,
            downloaded.content,
            downloaded.content_type,
            path,
            random_filename(extension),
            skip_existing,
        )

        media_type = (
            MediaType.VIDEO if downloaded.content_type.startswith("video/") else MediaType.IMAGE
        )
        media = Media(
            supabase_id=supabase_id,
            record_id=record_id,
            task_id=task_id,
            url=upload.url,
            type=downloaded.content_type,
            media_type=media_type.value,
            aspect_ratio=aspect_ratio,
            upload_source=UploadSource.USER.value,
            meta={
                "original_url": url,
                "filename": upload.filename,
                "size": downloaded.size,
                "upload_path": upload.path,
            },
        )
        await asyncio.to_thread(self._save_media, media)

        logger.info(f"媒体文件转存成功: {url} -> {upload.url}")
        return upload.url

    def _save_media(self, media: Media) -> Media:
        with Session(self.engine) as session:
            session.add(media)
            session.commit()
            session.refresh(media)
            return media

    def list_record_media(self, record_id: str) -> list[Media]:
        """获取某条记录的媒体文件（不含已删除）"""
        with Session(self.engine) as session:
            statement = (
                select(Media)
                .where(Media.record_id == record_id)
                .where(Media.is_delete == False)  # noqa: E712
                .order_by(Media.created_at.asc())
            )
            return list(session.exec(statement).all())

    def update_media_aspect_ratio(self, url: str, aspect_ratio: str) -> bool:
        """
        按 URL 更新媒体宽高比

        Args:
            url: 媒体URL
            aspect_ratio: 形如 16/9、4/3

        Returns:
            是否有记录被更新
        """
        if not ASPECT_RATIO_PATTERN.match(aspect_ratio):
            raise ValueError(f"无效的宽高比格式: {aspect_ratio}，应该是类似 16/9 或 4/3 的格式")

        with Session(self.engine) as session:
            medias = session.exec(select(Media).where(Media.url == url)).all()
            if not medias:
                logger.warning(f"未找到要更新的媒体文件: {url}")
                return False

            for media in medias:
                media.aspect_ratio = aspect_ratio
                media.updated_at = datetime.now()
                session.add(media)
            session.commit()

        logger.info(f"媒体文件宽高比更新成功: {url}, 新宽高比={aspect_ratio}")
        return True


# 全局单例
_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """获取媒体服务单例"""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
