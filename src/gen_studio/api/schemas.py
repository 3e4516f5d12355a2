"""
接口统一响应结构
"""
from typing import Any, Optional
from pydantic import BaseModel

from gen_studio.core.errors import ErrorKind


class ApiResult(BaseModel):
    """统一响应: {success, data, message, kind}"""
    success: bool
    data: Any = None
    message: str = ""
    kind: Optional[ErrorKind] = None
    field_errors: Optional[dict[str, list[str]]] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "") -> "ApiResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(
        cls,
        message: str,
        kind: ErrorKind = ErrorKind.INTERNAL,
        field_errors: Optional[dict[str, list[str]]] = None,
    ) -> "ApiResult":
        return cls(success=False, data=None, message=message, kind=kind, field_errors=field_errors)
