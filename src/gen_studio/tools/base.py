"""
工具基类 - 每个第三方生成平台实现一个 Tool

接口层只依赖这里的能力集合，新增平台时实现 BaseTool 并注册即可
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models.status import GenerationStatus, MediaType


@dataclass
class TaskRequest:
    """发往第三方的请求描述"""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[dict[str, Any]] = None
    # 下载生成结果时需要携带的认证头
    auth_headers: dict[str, str] = field(default_factory=dict)


@dataclass
class TaskStatusResult:
    """归一化后的任务状态"""

    urls: list[str]
    status: GenerationStatus
    type: MediaType
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "urls": list(self.urls),
            "status": self.status.value,
            "type": self.type.value,
        }
        if self.error:
            data["error"] = self.error
        return data


def _format_error_message(error: dict) -> str:
    """pydantic 的自定义校验错误带有 'Value error, ' 前缀，去掉后原样返回"""
    message = error.get("msg", "")
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


def collect_field_errors(errors: list) -> dict[str, list[str]]:
    """把 pydantic 错误列表展开为 {字段: [错误信息]}，请求体校验的 body 前缀会被去掉"""
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] == "body":
            loc = loc[1:]
        name = ".".join(loc) or "__root__"
        field_errors.setdefault(name, []).append(_format_error_message(error))
    return field_errors


class BaseTool(ABC):
    """生成工具基类"""

    # 参数校验模型
    params_model: Type[BaseModel]

    def validate(self, parameters: dict[str, Any]) -> BaseModel:
        """
        参数校验

        Raises:
            GenerationError(validation): 第一条错误信息原样作为提示
        """
        try:
            return self.params_model.model_validate(parameters or {})
        except ValidationError as e:
            field_errors = collect_field_errors(e.errors())
            first_error = next(iter(field_errors.values()))[0] if field_errors else ""
            raise GenerationError(
                ErrorKind.VALIDATION,
                first_error or "模型参数校验失败",
                field_errors=field_errors,
            ) from e

    @abstractmethod
    def build_task_request(self, params: BaseModel) -> TaskRequest:
        """构建创建任务的请求"""

    @abstractmethod
    def process_task_response(self, response: dict[str, Any]) -> str:
        """从创建任务的响应中提取第三方任务ID"""

    @abstractmethod
    def build_task_status_request(self, task_id: str) -> TaskRequest:
        """构建任务状态查询请求"""

    @abstractmethod
    def process_task_status_response(self, response: dict[str, Any]) -> TaskStatusResult:
        """把平台各自的状态响应归一化"""

    @abstractmethod
    def calculate_points(self, params: BaseModel) -> int:
        """计算需要消耗的积分（非负）"""

    @abstractmethod
    def get_return_type(self) -> MediaType:
        """返回生成结果类型"""

    def expected_count(self, params: BaseModel) -> int:
        """期望生成数量，默认 1"""
        return 1

    def _require(self, value: Any, message: str) -> Any:
        """响应缺字段时统一抛出第三方错误"""
        if value in (None, "", [], {}):
            raise GenerationError(ErrorKind.THIRD_PARTY, message)
        return value
