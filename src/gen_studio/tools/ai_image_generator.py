"""
AI 图片生成 - Replicate flux-schnell
"""
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from gen_studio.core.config import Settings
from gen_studio.models.status import GenerationStatus, MediaType
from gen_studio.tools.base import BaseTool, TaskRequest, TaskStatusResult

REPLICATE_BASE_URL = "https://api.replicate.com/v1"

RATIO_OPTIONS = [
    "1:1",
    "16:9",
    "9:16",
    "21:9",
    "9:21",
    "3:2",
    "2:3",
    "4:5",
    "5:4",
    "3:4",
    "4:3",
]
FORMAT_OPTIONS = ["webp", "png", "jpeg"]


class AiImageGeneratorParams(BaseModel):
    """图片生成参数"""

    prompt: str
    ratio: str
    count: int = 1
    format: str
    quality: int = 60
    steps: int = 3

    @field_validator("prompt")
    @classmethod
    def check_prompt(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("提示文本不能少于8个字符")
        if len(v) > 512:
            raise ValueError("提示文本不能超过512个字符")
        return v

    @field_validator("ratio")
    @classmethod
    def check_ratio(cls, v: str) -> str:
        if v not in RATIO_OPTIONS:
            raise ValueError("不支持的宽高比")
        return v

    @field_validator("format")
    @classmethod
    def check_format(cls, v: str) -> str:
        if v not in FORMAT_OPTIONS:
            raise ValueError("不支持的输出格式")
        return v

    @field_validator("count")
    @classmethod
    def check_count(cls, v: int) -> int:
        if not 1 <= v <= 4:
            raise ValueError("生成数量应在 1-4 之间")
        return v

    @field_validator("quality")
    @classmethod
    def check_quality(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError("输出质量应在 0-100 之间")
        return v

    @field_validator("steps")
    @classmethod
    def check_steps(cls, v: int) -> int:
        if not 1 <= v <= 4:
            raise ValueError("推理步数应在 1-4 之间")
        return v


class AiImageGeneratorTool(BaseTool):
    """文生图工具"""

    params_model = AiImageGeneratorParams

    def __init__(self, api_token: str, points: int = 0):
        self.api_token = api_token
        self.points = points

    @classmethod
    def from_settings(cls, settings: Settings) -> "AiImageGeneratorTool":
        return cls(
            api_token=settings.replicate_api_token,
            points=settings.ai_image_generator_points,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_token}",
        }

    def build_task_request(self, params: AiImageGeneratorParams) -> TaskRequest:
        return TaskRequest(
            url=f"{REPLICATE_BASE_URL}/models/black-forest-labs/flux-schnell/predictions",
            method="POST",
            headers=self._headers(),
            body={
                "input": {
                    "prompt": params.prompt,
                    "aspect_ratio": params.ratio,
                    "num_outputs": params.count,
                    "output_format": params.format,
                    "output_quality": params.quality,
                    "num_inference_steps": params.steps,
                }
            },
        )

    def process_task_response(self, response: dict[str, Any]) -> str:
        return self._require(response.get("id"), "Replicate 未返回任务ID")

    def build_task_status_request(self, task_id: str) -> TaskRequest:
        return TaskRequest(
            url=f"{REPLICATE_BASE_URL}/predictions/{task_id}",
            method="GET",
            headers=self._headers(),
        )

    def process_task_status_response(self, response: dict[str, Any]) -> TaskStatusResult:
        # Replicate 明确失败或被取消
        if response.get("status") in ("failed", "canceled"):
            return TaskStatusResult(
                urls=[],
                status=GenerationStatus.FAILED,
                type=MediaType.IMAGE,
                error=response.get("error") or response.get("status"),
            )

        output = response.get("output")
        if isinstance(output, str):
            output = [output]
        expected: Optional[int] = (response.get("input") or {}).get("num_outputs")

        # 没有输出或输出数量不足，视为仍在生成
        if not output or (expected and len(output) < expected):
            return TaskStatusResult(
                urls=[],
                status=GenerationStatus.PROCESSING,
                type=MediaType.IMAGE,
            )

        return TaskStatusResult(
            urls=list(output),
            status=GenerationStatus.SUCCEED,
            type=MediaType.IMAGE,
        )

    def calculate_points(self, params: AiImageGeneratorParams) -> int:
        return max(self.points, 0)

    def get_return_type(self) -> MediaType:
        return MediaType.IMAGE

    def expected_count(self, params: AiImageGeneratorParams) -> int:
        return params.count
