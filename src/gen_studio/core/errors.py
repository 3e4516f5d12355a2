"""
统一错误类型

服务层只抛 GenerationError，接口层按 kind 映射 HTTP 状态码并返回统一结构
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """稳定的错误类别，前端按它判断，不再匹配提示文案"""

    VALIDATION = "validation"
    UNSUPPORTED_TOOL = "unsupported_tool"
    UNAUTHENTICATED = "unauthenticated"
    USER_NOT_FOUND = "user_not_found"
    INSUFFICIENT_POINTS = "insufficient_points"
    THIRD_PARTY = "third_party"
    RECORD_NOT_FOUND = "record_not_found"
    DATABASE = "database"
    POLL_TIMEOUT = "poll_timeout"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNSUPPORTED_TOOL: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_POINTS: 402,
    ErrorKind.THIRD_PARTY: 502,
    ErrorKind.RECORD_NOT_FOUND: 404,
    ErrorKind.DATABASE: 503,
    ErrorKind.POLL_TIMEOUT: 504,
    ErrorKind.CANCELLED: 499,
    ErrorKind.INTERNAL: 500,
}


class GenerationError(Exception):
    """生成流程中的业务异常"""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        field_errors: Optional[dict[str, list[str]]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field_errors = field_errors or {}

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND.get(self.kind, 500)

    def __repr__(self) -> str:
        return f"GenerationError(kind={self.kind.value!r}, message={self.message!r})"
