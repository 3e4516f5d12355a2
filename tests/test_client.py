"""
轮询客户端测试
"""
import threading

import pytest

from gen_studio.client import GenerationClient
from gen_studio.core.errors import ErrorKind, GenerationError


class FakeResponse:
    def __init__(self, status_code, payload, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """按顺序返回预设响应，最后一个重复使用"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.headers = {}
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def _status(status, urls=()):
    return FakeResponse(200, {"success": True, "data": {"urls": list(urls), "status": status, "type": "image"}})


def test_token_sets_bearer_header():
    session = FakeSession(_status("waiting"))
    GenerationClient("http://localhost:8000/", token="abc", session=session)
    assert session.headers["Authorization"] == "Bearer abc"


def test_poll_returns_on_terminal():
    session = FakeSession(_status("waiting"), _status("processing"), _status("succeed", ["https://m/a.webp"]))
    client = GenerationClient("http://localhost:8000", session=session)
    seen = []

    result = client.poll_task_status("rec-1", on_status_update=seen.append, max_attempts=5, interval=0)

    assert result["urls"] == ["https://m/a.webp"]
    assert [item["status"] for item in seen] == ["waiting", "processing", "succeed"]
    assert session.calls[0][0] == "http://localhost:8000/api/record/rec-1"


def test_poll_times_out():
    session = FakeSession(_status("processing"))
    client = GenerationClient("http://localhost:8000", session=session)

    with pytest.raises(GenerationError) as exc_info:
        client.poll_task_status("rec-1", max_attempts=3, interval=0)

    assert exc_info.value.kind == ErrorKind.POLL_TIMEOUT
    assert exc_info.value.message == "轮询超时：已尝试 3 次，任务仍未完成"
    assert len(session.calls) == 3


def test_poll_cancelled():
    session = FakeSession(_status("processing"))
    client = GenerationClient("http://localhost:8000", session=session)
    cancel_event = threading.Event()

    def cancel_after_first(_):
        cancel_event.set()

    with pytest.raises(GenerationError) as exc_info:
        client.poll_task_status(
            "rec-1",
            on_status_update=cancel_after_first,
            max_attempts=10,
            interval=60,
            cancel_event=cancel_event,
        )

    assert exc_info.value.kind == ErrorKind.CANCELLED
    assert len(session.calls) == 1


def test_error_envelope_raises_kind():
    session = FakeSession(
        FakeResponse(404, {"success": False, "message": "未找到对应的任务记录", "kind": "record_not_found"}, "Not Found")
    )
    client = GenerationClient("http://localhost:8000", session=session)

    with pytest.raises(GenerationError) as exc_info:
        client.fetch_status("missing")

    assert exc_info.value.kind == ErrorKind.RECORD_NOT_FOUND
    assert exc_info.value.message == "未找到对应的任务记录"


def test_generate_and_wait():
    session = FakeSession(
        FakeResponse(200, {"success": True, "data": "rec-9"}),
        _status("failed"),
    )
    client = GenerationClient("http://localhost:8000", session=session)

    result = client.generate_and_wait("ai-image-generator", {"prompt": "a panda eating"}, interval=0)

    assert result["status"] == "failed"
    assert session.calls[0] == (
        "http://localhost:8000/api/generate",
        {"tool": "ai-image-generator", "parameters": {"prompt": "a panda eating"}},
    )
    assert session.calls[1][0] == "http://localhost:8000/api/record/rec-9"
