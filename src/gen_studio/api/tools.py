"""
工具列表 API
"""
from fastapi import APIRouter, Depends

from gen_studio.api.schemas import ApiResult
from gen_studio.tools import ToolRegistry, get_tool_registry

router = APIRouter(prefix="/tools", tags=["工具"])


@router.get("", response_model=ApiResult)
def list_tools(registry: ToolRegistry = Depends(get_tool_registry)):
    """已注册的工具及其返回类型"""
    items = [
        {"tool": name, "type": registry.require(name).get_return_type().value}
        for name in registry.supported_tools()
    ]
    return ApiResult.ok({"items": items, "total": len(items)})
