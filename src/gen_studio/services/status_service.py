"""
任务状态服务 - 查询第三方任务状态并转存生成结果
"""
import asyncio
from typing import Any, Optional

from gen_studio.core import get_settings, get_logger
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import GenerationStatus, Record, Task
from gen_studio.services.http_client import ThirdPartyClient, get_third_party_client
from gen_studio.services.media_service import MediaService, get_media_service, to_media_aspect_ratio
from gen_studio.services.record_service import RecordService, get_record_service
from gen_studio.tools import TaskStatusResult, ToolRegistry, get_tool_registry

logger = get_logger(__name__)


class StatusService:
    """
    任务状态服务

    每次轮询都会持久化最近观察到的状态；已到终态的任务直接返回库中结果，不再请求第三方
    """

    def __init__(
        self,
        registry: ToolRegistry,
        record_service: RecordService,
        media_service: MediaService,
        http_client: ThirdPartyClient,
        upload_path: Optional[str] = None,
    ):
        self.registry = registry
        self.record_service = record_service
        self.media_service = media_service
        self.http_client = http_client
        self.upload_path = upload_path or get_settings().media_upload_path

    async def get_status(self, record_id: str) -> dict[str, Any]:
        """
        查询任务状态

        Returns:
            {"urls": [...], "status": "...", "type": "image|video"}
        """
        row = await self.record_service.fetch_task_with_record(record_id)
        if row is None:
            logger.error(f"未找到对应的任务记录: {record_id}")
            raise GenerationError(ErrorKind.RECORD_NOT_FOUND, "未找到对应的任务记录")

        task, record = row

        # 终态直接返回，不再请求第三方
        if GenerationStatus(task.status).is_terminal:
            return await asyncio.to_thread(self._stored_payload, task, record)

        tool = self.registry.require(record.tool)
        request = tool.build_task_status_request(task.task_id)
        response = await self.http_client.send(request)

        result = tool.process_task_status_response(response)
        logger.info(f"三方API返回数据处理成功: record={record_id}, status={result.status.value}")

        if result.status == GenerationStatus.SUCCEED and result.urls:
            logger.info(f"任务成功，转存 {len(result.urls)} 个媒体文件: record={record_id}")
            result.urls = await self._rehost(result, request.auth_headers, task, record)

        payload = result.to_dict()
        await asyncio.to_thread(
            self.record_service.advance_task_status, task.id, result.status, payload
        )
        return payload

    async def _rehost(
        self,
        result: TaskStatusResult,
        auth_headers: dict[str, str],
        task: Task,
        record: Record,
    ) -> list[str]:
        """并行转存所有 URL，单个失败不影响其他"""
        aspect_ratio = to_media_aspect_ratio((record.parameters or {}).get("ratio"))

        async def convert(url: str) -> Optional[str]:
            try:
                return await self.media_service.convert_media(
                    url,
                    headers=auth_headers or None,
                    path=self.upload_path,
                    supabase_id=record.supabase_id,
                    record_id=record.id,
                    task_id=task.id,
                    aspect_ratio=aspect_ratio,
                )
            except Exception as e:
                logger.error(f"媒体文件转存失败: {url}, 错误: {e}", exc_info=True)
                return None

        converted = await asyncio.gather(*(convert(url) for url in result.urls))
        owned_urls = [url for url in converted if url]
        logger.info(f"所有媒体文件处理完成: 成功 {len(owned_urls)}/{len(result.urls)}")
        return owned_urls

    def _stored_payload(self, task: Task, record: Record) -> dict[str, Any]:
        """终态任务的结果：URL 取自 medias 表"""
        medias = self.media_service.list_record_media(record.id)
        payload = {
            "urls": [media.url for media in medias],
            "status": task.status,
            "type": record.type,
        }
        error = (task.result or {}).get("error")
        if error:
            payload["error"] = error
        return payload


# 全局单例
_status_service: Optional[StatusService] = None


def get_status_service() -> StatusService:
    """获取状态服务单例"""
    global _status_service
    if _status_service is None:
        _status_service = StatusService(
            registry=get_tool_registry(),
            record_service=get_record_service(),
            media_service=get_media_service(),
            http_client=get_third_party_client(),
        )
    return _status_service
