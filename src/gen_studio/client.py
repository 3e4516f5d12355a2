"""
生成任务客户端 - 提交任务并轮询状态
"""
import threading
from typing import Any, Callable, Optional

import requests

from gen_studio.core import get_settings, get_logger
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models.status import GenerationStatus

logger = get_logger(__name__)

TERMINAL_STATUSES = {GenerationStatus.SUCCEED.value, GenerationStatus.FAILED.value}


class GenerationClient:
    """
    生成服务的 HTTP 客户端

    轮询是有界循环：到终态返回，超过最大次数抛 poll_timeout，
    cancel_event 被设置时立即停止并抛 cancelled（只停止观察，不会取消第三方任务）
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _post(self, path: str, payload: Optional[dict] = None) -> Any:
        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(ErrorKind.THIRD_PARTY, f"请求失败: {e}") from e

        try:
            result = response.json()
        except ValueError:
            result = {}

        if not response.ok or not result.get("success"):
            message = result.get("message") or f"请求失败: {response.status_code} {response.reason}"
            kind = result.get("kind") or ErrorKind.INTERNAL.value
            try:
                error_kind = ErrorKind(kind)
            except ValueError:
                error_kind = ErrorKind.INTERNAL
            raise GenerationError(error_kind, message, result.get("field_errors"))

        return result.get("data")

    def generate(self, tool: str, parameters: dict[str, Any]) -> str:
        """提交生成任务，返回 record ID"""
        record_id = self._post("/api/generate", {"tool": tool, "parameters": parameters})
        logger.info(f"生成任务已提交: record_id={record_id}")
        return record_id

    def fetch_status(self, record_id: str) -> dict[str, Any]:
        """查询一次任务状态"""
        return self._post(f"/api/record/{record_id}")

    def poll_task_status(
        self,
        record_id: str,
        on_status_update: Optional[Callable[[dict], None]] = None,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        """
        轮询任务状态直到终态

        Args:
            record_id: 任务记录ID
            on_status_update: 每次查询后的回调
            max_attempts: 最大尝试次数，默认 50
            interval: 轮询间隔（秒），默认 5
            cancel_event: 取消信号

        Returns:
            终态时的状态数据
        """
        settings = get_settings()
        max_attempts = max_attempts or settings.poll_max_attempts
        interval = settings.poll_interval if interval is None else interval
        cancel_event = cancel_event or threading.Event()

        for attempt in range(1, max_attempts + 1):
            if cancel_event.is_set():
                raise GenerationError(ErrorKind.CANCELLED, "轮询已取消")

            data = self.fetch_status(record_id)
            if on_status_update:
                on_status_update(data)

            status = (data or {}).get("status")
            if status in TERMINAL_STATUSES:
                logger.info(f"任务已结束: record_id={record_id}, status={status}, 第{attempt}次查询")
                return data

            if attempt < max_attempts and cancel_event.wait(interval):
                raise GenerationError(ErrorKind.CANCELLED, "轮询已取消")

        raise GenerationError(
            ErrorKind.POLL_TIMEOUT,
            f"轮询超时：已尝试 {max_attempts} 次，任务仍未完成",
        )

    def generate_and_wait(
        self,
        tool: str,
        parameters: dict[str, Any],
        **poll_kwargs: Any,
    ) -> dict[str, Any]:
        """提交任务并等待完成"""
        record_id = self.generate(tool, parameters)
        return self.poll_task_status(record_id, **poll_kwargs)
