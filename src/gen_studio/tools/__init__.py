"""
生成工具模块
"""
from .base import BaseTool, TaskRequest, TaskStatusResult
from .registry import ToolRegistry, build_default_registry, get_tool_registry

__all__ = [
    "BaseTool",
    "TaskRequest",
    "TaskStatusResult",
    "ToolRegistry",
    "build_default_registry",
    "get_tool_registry",
]
