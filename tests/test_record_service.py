"""
记录服务测试
"""
import asyncio
import time
from datetime import datetime

import pytest

from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import GenerationStatus, RecordStatus
from gen_studio.services.record_service import run_db_with_retry


@pytest.fixture
def task(record_service):
    record = record_service.create_record(
        supabase_id="anonymous",
        tool="ai-image-generator",
        type="image",
        parameters={"prompt": "a panda eating bamboo", "ratio": "1:1"},
    )
    return record_service.create_task(record.id, "pred-1")


def test_create_record_defaults(record_service):
    record = record_service.create_record(
        supabase_id="user-1",
        tool="veo-3-fast-generate-preview",
        type="video",
        parameters={"prompt": "a cat", "ratio": "16:9"},
        points_count=10,
    )

    assert record.status == RecordStatus.WAITING.value
    assert record.expected_count == 1
    assert record.points_count == 10
    assert record_service.get_record(record.id).parameters == {"prompt": "a cat", "ratio": "16:9"}


def test_timestamps_are_naive_local_time(record_service, task):
    """存取前后都是不带时区的本地时间，可以直接和 datetime.now() 比较"""
    before = datetime.now()
    updated = record_service.advance_task_status(task.id, GenerationStatus.PROCESSING)
    record = record_service.get_record(task.record_id)

    for value in (record.created_at, record.updated_at, updated.created_at, updated.updated_at):
        assert isinstance(value, datetime)
        assert value.tzinfo is None
    assert updated.updated_at >= before
    assert record.created_at <= datetime.now()


def test_mark_record(record_service, task):
    record = record_service.mark_record(task.record_id, RecordStatus.FAIL, "API请求失败: 500 Internal Server Error")

    assert record.status == "fail"
    assert record.error_message == "API请求失败: 500 Internal Server Error"
    assert record_service.mark_record("missing", RecordStatus.SUCCESS) is None


def test_get_task_with_record(record_service, task):
    row = record_service.get_task_with_record(task.record_id)

    assert row is not None
    found_task, record = row
    assert found_task.id == task.id
    assert record.id == task.record_id
    assert record_service.get_task_with_record("missing") is None


class TestAdvanceTaskStatus:
    """状态只能向终态推进"""

    def test_waiting_to_processing(self, record_service, task):
        updated = record_service.advance_task_status(task.id, GenerationStatus.PROCESSING, {"urls": []})
        assert updated.status == "processing"

    def test_processing_does_not_fall_back(self, record_service, task):
        record_service.advance_task_status(task.id, GenerationStatus.PROCESSING)
        updated = record_service.advance_task_status(task.id, GenerationStatus.WAITING)
        assert updated.status == "processing"

    def test_terminal_is_final(self, record_service, task):
        record_service.advance_task_status(
            task.id, GenerationStatus.SUCCEED, {"urls": ["https://media.example.com/a.webp"]}
        )
        updated = record_service.advance_task_status(task.id, GenerationStatus.FAILED, {"error": "late"})

        assert updated.status == "succeed"
        assert updated.result == {"urls": ["https://media.example.com/a.webp"]}


class TestRunDbWithRetry:
    """超时与有限重试"""

    def test_returns_result(self):
        assert asyncio.run(run_db_with_retry(lambda: 42, timeout=1.0)) == 42

    def test_retries_then_succeeds(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise RuntimeError("database is locked")
            return "ok"

        result = asyncio.run(run_db_with_retry(flaky, timeout=1.0, max_retries=3, delay=0.01))

        assert result == "ok"
        assert len(calls) == 3

    def test_exhausted_raises_database_error(self):
        calls = []

        def broken():
            calls.append(1)
            raise RuntimeError("connection refused")

        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(run_db_with_retry(broken, timeout=1.0, max_retries=2, delay=0.01))

        assert exc_info.value.kind == ErrorKind.DATABASE
        assert exc_info.value.message == "数据库查询失败，请稍后重试"
        assert len(calls) == 2

    def test_timeout_counts_as_failure(self):
        with pytest.raises(GenerationError) as exc_info:
            asyncio.run(run_db_with_retry(lambda: time.sleep(0.3), timeout=0.05, max_retries=1))

        assert exc_info.value.kind == ErrorKind.DATABASE
