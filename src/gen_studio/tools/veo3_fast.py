"""
Veo 3 Fast 视频生成 - Gemini 长任务接口
"""
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from gen_studio.core.config import Settings
from gen_studio.models.status import GenerationStatus, MediaType
from gen_studio.tools.base import BaseTool, TaskRequest, TaskStatusResult

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

RATIO_OPTIONS = ["16:9"]


class Veo3FastParams(BaseModel):
    """视频生成参数"""

    prompt: str
    negative_prompt: Optional[str] = Field(default=None, alias="negativePrompt")
    ratio: str

    model_config = {"populate_by_name": True}

    @field_validator("prompt", "negative_prompt")
    @classmethod
    def check_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 512:
            raise ValueError("提示文本不能超过512个字符")
        return v

    @field_validator("ratio")
    @classmethod
    def check_ratio(cls, v: str) -> str:
        if v not in RATIO_OPTIONS:
            raise ValueError("不支持的宽高比")
        return v


class Veo3FastGeneratePreviewTool(BaseTool):
    """文生视频工具"""

    params_model = Veo3FastParams

    def __init__(self, api_key: str, points: int = 0):
        self.api_key = api_key
        self.points = points

    @classmethod
    def from_settings(cls, settings: Settings) -> "Veo3FastGeneratePreviewTool":
        return cls(api_key=settings.gemini_api_token, points=settings.veo3_fast_points)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    def build_task_request(self, params: Veo3FastParams) -> TaskRequest:
        parameters: dict[str, Any] = {"aspectRatio": params.ratio}
        if params.negative_prompt:
            parameters["negativePrompt"] = params.negative_prompt
        return TaskRequest(
            url=f"{GEMINI_BASE_URL}/models/veo-3.0-fast-generate-preview:predictLongRunning",
            method="POST",
            headers=self._headers(),
            body={
                "instances": [{"prompt": params.prompt}],
                "parameters": parameters,
            },
        )

    def process_task_response(self, response: dict[str, Any]) -> str:
        # 长任务名称形如 models/.../operations/xxx
        return self._require(response.get("name"), "Gemini 未返回任务名称")

    def build_task_status_request(self, task_id: str) -> TaskRequest:
        return TaskRequest(
            url=f"{GEMINI_BASE_URL}/{task_id}",
            method="GET",
            headers=self._headers(),
            # 视频文件下载同样需要 API key
            auth_headers={"x-goog-api-key": self.api_key},
        )

    def process_task_status_response(self, response: dict[str, Any]) -> TaskStatusResult:
        if not response.get("done"):
            return TaskStatusResult(
                urls=[],
                status=GenerationStatus.PROCESSING,
                type=MediaType.VIDEO,
            )

        if response.get("error"):
            return TaskStatusResult(
                urls=[],
                status=GenerationStatus.FAILED,
                type=MediaType.VIDEO,
                error=(response["error"] or {}).get("message"),
            )

        samples = (
            ((response.get("response") or {}).get("generateVideoResponse") or {})
            .get("generatedSamples")
            or []
        )
        urls = [
            sample["video"]["uri"]
            for sample in samples
            if (sample.get("video") or {}).get("uri")
        ]
        if not urls:
            # 完成但没有样本，通常是内容被安全策略过滤
            return TaskStatusResult(
                urls=[],
                status=GenerationStatus.FAILED,
                type=MediaType.VIDEO,
                error="未返回生成的视频",
            )

        return TaskStatusResult(
            urls=urls,
            status=GenerationStatus.SUCCEED,
            type=MediaType.VIDEO,
        )

    def calculate_points(self, params: Veo3FastParams) -> int:
        return max(self.points, 0)

    def get_return_type(self) -> MediaType:
        return MediaType.VIDEO
