"""
生成记录服务 - records / tasks 表读写
"""
import asyncio
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar
from sqlmodel import Session, select

from gen_studio.core import get_settings, get_logger
from gen_studio.core.database import engine as default_engine
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import GenerationStatus, Record, RecordStatus, Task, STATUS_RANK

logger = get_logger(__name__)

T = TypeVar("T")


async def run_db_with_retry(
    operation: Callable[[], T],
    timeout: float,
    max_retries: int = 3,
    delay: float = 1.0,
) -> T:
    """
    数据库操作超时 + 有限重试

    每次尝试都在线程中执行并受 timeout 约束，第 i 次失败后等待 delay * i 秒
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, max_retries + 1):
        try:
            return await asyncio.wait_for(asyncio.to_thread(operation), timeout=timeout)
        except Exception as e:
            last_error = e
            logger.warning(f"数据库操作重试 {attempt}/{max_retries}: {e!r}")
            if attempt < max_retries:
                await asyncio.sleep(delay * attempt)

    raise GenerationError(ErrorKind.DATABASE, "数据库查询失败，请稍后重试") from last_error


class RecordService:
    """生成记录服务"""

    def __init__(
        self,
        engine=None,
        query_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        settings = get_settings()
        self.engine = engine or default_engine
        self.query_timeout = query_timeout if query_timeout is not None else settings.db_query_timeout
        self.max_retries = max_retries if max_retries is not None else settings.db_max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.db_retry_delay

    def create_record(
        self,
        supabase_id: str,
        tool: str,
        type: str,
        parameters: dict[str, Any],
        expected_count: int = 1,
        points_count: int = 0,
    ) -> Record:
        """创建生成记录（waiting 状态）"""
        with Session(self.engine) as session:
            record = Record(
                supabase_id=supabase_id,
                tool=tool,
                type=type,
                parameters=parameters,
                expected_count=expected_count,
                points_count=points_count,
                status=RecordStatus.WAITING.value,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def get_record(self, record_id: str) -> Optional[Record]:
        with Session(self.engine) as session:
            return session.get(Record, record_id)

    def mark_record(
        self,
        record_id: str,
        status: RecordStatus,
        error_message: Optional[str] = None,
    ) -> Optional[Record]:
        """更新记录状态"""
        with Session(self.engine) as session:
            record = session.get(Record, record_id)
            if record is None:
                return None
            record.status = status.value
            if error_message is not None:
                record.error_message = error_message
            record.updated_at = datetime.now()
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    def create_task(self, record_id: str, task_id: str) -> Task:
        """创建第三方任务记录（waiting 状态）"""
        now = datetime.now()
        with Session(self.engine) as session:
            task = Task(
                record_id=record_id,
                task_id=task_id,
                status=GenerationStatus.WAITING.value,
                submit_at=now,
            )
            session.add(task)
            session.commit()
            session.refresh(task)
            return task

    def get_task_with_record(self, record_id: str) -> Optional[tuple[Task, Record]]:
        """联表查询 task + record"""
        with Session(self.engine) as session:
            statement = (
                select(Task, Record)
                .join(Record, Task.record_id == Record.id)
                .where(Task.record_id == record_id)
                .limit(1)
            )
            row = session.exec(statement).first()
            if row is None:
                return None
            task, record = row
            return task, record

    async def fetch_task_with_record(self, record_id: str) -> Optional[tuple[Task, Record]]:
        """带超时和重试的联表查询"""
        return await run_db_with_retry(
            lambda: self.get_task_with_record(record_id),
            timeout=self.query_timeout,
            max_retries=self.max_retries,
            delay=self.retry_delay,
        )

    def advance_task_status(
        self,
        task_pk: str,
        status: GenerationStatus,
        result: Optional[dict[str, Any]] = None,
    ) -> Optional[Task]:
        """
        推进任务状态

        只允许向终态前进：终态不再改变，processing 不会退回 waiting
        """
        with Session(self.engine) as session:
            task = session.get(Task, task_pk)
            if task is None:
                return None

            current = GenerationStatus(task.status)
            if current.is_terminal:
                return task
            if STATUS_RANK[status] < STATUS_RANK[current]:
                logger.debug(f"忽略状态回退: {current.value} -> {status.value}, task={task_pk}")
                return task

            task.status = status.value
            if result is not None:
                task.result = result
            task.updated_at = datetime.now()
            session.add(task)
            session.commit()
            session.refresh(task)
            return task


# 全局单例
_record_service: Optional[RecordService] = None


def get_record_service() -> RecordService:
    """获取记录服务单例"""
    global _record_service
    if _record_service is None:
        _record_service = RecordService()
    return _record_service
