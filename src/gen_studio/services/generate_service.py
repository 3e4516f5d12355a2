"""
生成服务 - 创建 record / task 并向第三方发起任务
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

from gen_studio.core import get_logger
from gen_studio.core.auth import ANONYMOUS_ID, CurrentUser
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import RecordStatus
from gen_studio.services.http_client import ThirdPartyClient, get_third_party_client
from gen_studio.services.record_service import RecordService, get_record_service
from gen_studio.services.user_service import UserService, get_user_service
from gen_studio.tools import ToolRegistry, get_tool_registry

logger = get_logger(__name__)


@dataclass
class _Reservation:
    """失败清理时需要的上下文"""

    record_id: str
    supabase_id: str
    points: int = 0


class GenerateService:
    """
    生成服务

    步骤严格串行：校验 -> 创建 record -> 扣积分 -> 请求第三方 -> 创建 task -> record 标记成功
    """

    def __init__(
        self,
        registry: ToolRegistry,
        record_service: RecordService,
        user_service: UserService,
        http_client: ThirdPartyClient,
    ):
        self.registry = registry
        self.record_service = record_service
        self.user_service = user_service
        self.http_client = http_client

    @asynccontextmanager
    async def _failure_cleanup(self, reservation: _Reservation):
        """
        record 创建之后的任何异常都会进入这里

        标记失败和返还积分各自独立兜底，其中一步出错不会跳过另一步，原异常继续抛出
        """
        try:
            yield reservation
        except BaseException as e:
            message = e.message if isinstance(e, GenerationError) else (str(e) or "API请求失败")
            try:
                await asyncio.to_thread(
                    self.record_service.mark_record,
                    reservation.record_id,
                    RecordStatus.FAIL,
                    message,
                )
                logger.info(f"record 已标记为失败: {reservation.record_id}")
            except Exception:
                logger.error(f"更新record状态失败: {reservation.record_id}", exc_info=True)
            finally:
                if reservation.points > 0:
                    try:
                        await asyncio.to_thread(
                            self.user_service.refund_points,
                            reservation.supabase_id,
                            reservation.points,
                        )
                    except Exception:
                        logger.error(
                            f"返还积分失败: 用户{reservation.supabase_id}, 积分{reservation.points}",
                            exc_info=True,
                        )
            raise

    async def generate(
        self,
        tool: str,
        parameters: dict[str, Any],
        user: Optional[CurrentUser] = None,
    ) -> str:
        """
        发起生成任务

        Args:
            tool: 工具 key
            parameters: 原始参数，由具体工具校验
            user: 当前登录用户，未登录为 None

        Returns:
            record ID
        """
        if not tool or not tool.strip():
            raise GenerationError(ErrorKind.VALIDATION, "模型ID不能为空")

        # 1. 工具与参数校验，失败时不落库
        tool_instance = self.registry.require(tool)
        params = tool_instance.validate(parameters)
        request = tool_instance.build_task_request(params)

        # 2. 积分
        points = tool_instance.calculate_points(params)
        if points > 0 and user is None:
            raise GenerationError(ErrorKind.UNAUTHENTICATED, "未登录，请先登录")

        supabase_id = user.id if user else ANONYMOUS_ID
        if user is not None:
            # 未调用过用户信息接口的登录用户也要有积分账户
            await asyncio.to_thread(self.user_service.ensure_user, user)

        # 3. 创建 record
        record = await asyncio.to_thread(
            self.record_service.create_record,
            supabase_id=supabase_id,
            tool=tool,
            type=tool_instance.get_return_type().value,
            parameters=params.model_dump(mode="json", by_alias=True, exclude_none=True),
            expected_count=tool_instance.expected_count(params),
            points_count=points,
        )
        logger.info(f"创建的record记录: {record.id}, tool={tool}, 用户={supabase_id}, 积分={points}")

        async with self._failure_cleanup(_Reservation(record.id, supabase_id)) as reservation:
            # 4. 条件扣减积分，余额不足时不会扣成负数
            if points > 0:
                await asyncio.to_thread(self.user_service.reserve_points, supabase_id, points)
                reservation.points = points

            # 5. 请求第三方
            response = await self.http_client.send(request)
            task_id = tool_instance.process_task_response(response)
            logger.info(f"第三方任务已创建: record={record.id}, task_id={task_id}")

            # 6. 创建 task 并标记 record 成功
            task = await asyncio.to_thread(self.record_service.create_task, record.id, task_id)
            await asyncio.to_thread(
                self.record_service.mark_record, record.id, RecordStatus.SUCCESS
            )
            logger.info(f"创建的task记录: {task.id}")

        return record.id


# 全局单例
_generate_service: Optional[GenerateService] = None


def get_generate_service() -> GenerateService:
    """获取生成服务单例"""
    global _generate_service
    if _generate_service is None:
        _generate_service = GenerateService(
            registry=get_tool_registry(),
            record_service=get_record_service(),
            user_service=get_user_service(),
            http_client=get_third_party_client(),
        )
    return _generate_service
