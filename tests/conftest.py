"""
测试配置
"""
import os
import sys
from typing import Any, Optional

import pytest

# 添加 src 目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# 设置测试环境变量（必须在导入应用前）
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REPLICATE_API_TOKEN"] = "test-replicate"
os.environ["GEMINI_API_TOKEN"] = "test-gemini"
os.environ["API_CORE_TOKEN"] = "test-apicore"
os.environ["S3_BUCKET_NAME"] = "test-bucket"
os.environ["S3_PUBLIC_BASE_URL"] = "https://media.example.com"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"

from gen_studio.core.auth import CurrentUser
from gen_studio.core.config import Settings
from gen_studio.core.database import create_db_engine, init_db
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.services.generate_service import GenerateService
from gen_studio.services.http_client import DownloadedFile
from gen_studio.services.media_service import MediaService
from gen_studio.services.record_service import RecordService
from gen_studio.services.status_service import StatusService
from gen_studio.services.storage_service import UploadResult
from gen_studio.services.user_service import UserService
from gen_studio.tools import build_default_registry
from gen_studio.tools.base import TaskRequest

OWNED_DOMAIN = "https://media.example.com"


class FakeThirdPartyClient:
    """
    假的第三方客户端

    按 URL 前缀匹配预设响应；响应是异常实例时抛出
    """

    def __init__(self):
        self.responses: dict[str, list[Any]] = {}
        self.downloads: dict[str, Any] = {}
        self.sent: list[TaskRequest] = []
        self.downloaded: list[tuple[str, Optional[dict]]] = []

    def queue(self, url_prefix: str, *responses: Any) -> None:
        self.responses.setdefault(url_prefix, []).extend(responses)

    def set_download(self, url: str, result: Any) -> None:
        self.downloads[url] = result

    async def send(self, request: TaskRequest) -> dict:
        self.sent.append(request)
        # 最长前缀优先
        matches = [
            prefix for prefix, queued in self.responses.items()
            if request.url.startswith(prefix) and queued
        ]
        if not matches:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        queued = self.responses[max(matches, key=len)]
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, BaseException):
            raise response
        return response

    async def download(self, url: str, headers: Optional[dict] = None) -> DownloadedFile:
        self.downloaded.append((url, headers))
        result = self.downloads.get(url)
        if result is None:
            raise GenerationError(ErrorKind.THIRD_PARTY, "下载媒体文件失败: 404 Not Found")
        if isinstance(result, BaseException):
            raise result
        return result


class FakeStorage:
    """内存对象存储"""

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    def upload_bytes(self, data, content_type, path="media", filename=None, skip_existing=False):
        key = f"{path}/{filename}"
        self.objects[key] = data
        return UploadResult(
            key=key,
            filename=filename,
            path=path,
            size=len(data),
            content_type=content_type,
            url=f"{OWNED_DOMAIN}/{key}",
            upload_time="2026-01-01T00:00:00",
        )


@pytest.fixture
def test_db(tmp_path):
    """测试数据库 fixture（文件库，支持多线程并发访问）"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test_gen_studio.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        replicate_api_token="test-replicate",
        api_core_token="test-apicore",
        ai_image_generator_points=0,
        veo3_fast_points=10,
        animals_caught_on_camera_points=5,
    )


@pytest.fixture
def registry(settings):
    return build_default_registry(settings)


@pytest.fixture
def http_client():
    return FakeThirdPartyClient()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def record_service(test_db):
    return RecordService(engine=test_db, query_timeout=5.0, max_retries=2, retry_delay=0.01)


@pytest.fixture
def user_service(test_db):
    return UserService(engine=test_db, default_points=10)


@pytest.fixture
def media_service(test_db, http_client, storage):
    return MediaService(engine=test_db, http_client=http_client, storage=storage)


@pytest.fixture
def generate_service(registry, record_service, user_service, http_client):
    return GenerateService(
        registry=registry,
        record_service=record_service,
        user_service=user_service,
        http_client=http_client,
    )


@pytest.fixture
def status_service(registry, record_service, media_service, http_client):
    return StatusService(
        registry=registry,
        record_service=record_service,
        media_service=media_service,
        http_client=http_client,
        upload_path="generator/record",
    )


@pytest.fixture
def current_user(user_service):
    """已登录且有 10 积分的用户"""
    identity = CurrentUser(id="user-1", email="panda@example.com", name="panda")
    user_service.sync_user(identity)
    return identity
