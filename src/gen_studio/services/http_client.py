"""
第三方 HTTP 调用封装
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import requests

from gen_studio.core import get_settings, get_logger
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.tools.base import TaskRequest

logger = get_logger(__name__)


@dataclass
class DownloadedFile:
    """下载到内存的媒体文件"""

    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class ThirdPartyClient:
    """
    第三方平台 HTTP 客户端

    requests 是同步库，统一通过 asyncio.to_thread 调用，避免阻塞事件循环
    """

    def __init__(self, timeout: float = 60.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    async def send(self, request: TaskRequest) -> dict[str, Any]:
        """
        发送任务请求并解析 JSON

        Raises:
            GenerationError(third_party): 网络异常、非 2xx、响应不是 JSON
        """
        logger.info(f"请求第三方API: {request.method} {request.url}")
        try:
            response = await asyncio.to_thread(
                self.session.request,
                request.method,
                request.url,
                headers=request.headers,
                json=request.body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"第三方API网络异常: {request.url}, error: {e}")
            raise GenerationError(ErrorKind.THIRD_PARTY, f"API请求失败: {e}") from e

        if not response.ok:
            logger.error(
                f"第三方API请求失败: {response.status_code} {response.reason}, body: {response.text[:500]}"
            )
            raise GenerationError(
                ErrorKind.THIRD_PARTY,
                f"API请求失败: {response.status_code} {response.reason}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError(ErrorKind.THIRD_PARTY, "第三方API返回的不是JSON") from e

        if not isinstance(data, dict):
            raise GenerationError(ErrorKind.THIRD_PARTY, "第三方API返回格式错误")
        return data

    async def download(self, url: str, headers: Optional[dict[str, str]] = None) -> DownloadedFile:
        """下载媒体文件，可携带平台认证头"""
        try:
            response = await asyncio.to_thread(
                self.session.get,
                url,
                headers=headers or {},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(ErrorKind.THIRD_PARTY, f"下载媒体文件失败: {e}") from e

        if not response.ok:
            raise GenerationError(
                ErrorKind.THIRD_PARTY,
                f"下载媒体文件失败: {response.status_code} {response.reason}",
            )

        content_type = response.headers.get("Content-Type", "application/octet-stream")
        # 去掉 charset 等参数
        content_type = content_type.split(";")[0].strip().lower()
        logger.info(f"媒体文件下载成功，大小: {len(response.content)} bytes")
        return DownloadedFile(content=response.content, content_type=content_type)


# 全局单例
_client: Optional[ThirdPartyClient] = None


def get_third_party_client() -> ThirdPartyClient:
    """获取第三方客户端单例"""
    global _client
    if _client is None:
        _client = ThirdPartyClient(timeout=get_settings().third_party_timeout)
    return _client
