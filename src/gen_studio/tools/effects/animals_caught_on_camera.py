"""
视频特效：动物监控画面 - Kling 多图生视频（apicore 代理）
"""
from typing import Any

from pydantic import BaseModel, field_validator

from gen_studio.core.config import Settings
from gen_studio.models.status import GenerationStatus, MediaType
from gen_studio.tools.base import BaseTool, TaskRequest, TaskStatusResult

API_CORE_URL = "https://api.apicore.ai/kling/v1/videos/multi-image2video"

EFFECT_PROMPT = (
    "Night-vision surveillance footage, backyard scene, the main figure from the "
    "reference image bouncing on a trampoline, grainy green-tinted CCTV aesthetic, "
    "motion blur, timestamp overlay, low-resolution quality."
)


class AnimalsCaughtOnCameraParams(BaseModel):
    image: str

    @field_validator("image")
    @classmethod
    def check_image(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("图片不能为空")
        return v


class AnimalsCaughtOnCameraTool(BaseTool):
    """固定提示词的图生视频特效"""

    params_model = AnimalsCaughtOnCameraParams

    def __init__(self, api_token: str, points: int = 0):
        self.api_token = api_token
        self.points = points

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnimalsCaughtOnCameraTool":
        return cls(
            api_token=settings.api_core_token,
            points=settings.animals_caught_on_camera_points,
        )

    def _auth(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    def build_task_request(self, params: AnimalsCaughtOnCameraParams) -> TaskRequest:
        return TaskRequest(
            url=API_CORE_URL,
            method="POST",
            headers={"Content-Type": "application/json", **self._auth()},
            body={
                "model_name": "kling-v1-6",
                "image_list": [{"image": params.image}],
                "prompt": EFFECT_PROMPT,
            },
        )

    def process_task_response(self, response: dict[str, Any]) -> str:
        data = response.get("data") or {}
        return self._require(data.get("task_id"), f"apicore 未返回任务ID: {response.get('message', '')}")

    def build_task_status_request(self, task_id: str) -> TaskRequest:
        return TaskRequest(
            url=f"{API_CORE_URL}/{task_id}",
            method="GET",
            headers={"Content-Type": "application/json", **self._auth()},
            auth_headers=self._auth(),
        )

    def process_task_status_response(self, response: dict[str, Any]) -> TaskStatusResult:
        data = response.get("data") or {}
        task_status = data.get("task_status")

        if response.get("code") == 0 and task_status in ("succeed", "failed"):
            if task_status == "failed":
                return TaskStatusResult(
                    urls=[],
                    status=GenerationStatus.FAILED,
                    type=MediaType.VIDEO,
                    error=data.get("task_status_msg"),
                )
            videos = (data.get("task_result") or {}).get("videos") or []
            return TaskStatusResult(
                urls=[video["url"] for video in videos if video.get("url")],
                status=GenerationStatus.SUCCEED,
                type=MediaType.VIDEO,
            )

        return TaskStatusResult(
            urls=[],
            status=GenerationStatus.PROCESSING,
            type=MediaType.VIDEO,
        )

    def calculate_points(self, params: AnimalsCaughtOnCameraParams) -> int:
        return max(self.points, 0)

    def get_return_type(self) -> MediaType:
        return MediaType.VIDEO
