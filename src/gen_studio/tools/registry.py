"""
工具注册表

应用启动时构建一次，通过依赖注入交给生成/轮询服务，不使用模块级全局表
"""
from typing import Optional

from gen_studio.core.config import Settings, get_settings
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.core.logging import get_logger
from gen_studio.tools.base import BaseTool

logger = get_logger(__name__)


class ToolRegistry:
    """按字符串 key 查找工具"""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, name: str, tool: BaseTool) -> None:
        if name in self._tools:
            logger.warning(f"工具已注册，将被覆盖: {name}")
        self._tools[name] = tool

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def require(self, name: str) -> BaseTool:
        """获取工具，不存在时抛出 unsupported_tool"""
        tool = self.get(name)
        if tool is None:
            logger.error(
                f"不支持的工具: {name}, 已注册: {', '.join(self.supported_tools())}"
            )
            raise GenerationError(ErrorKind.UNSUPPORTED_TOOL, f"不支持的工具: {name}")
        return tool

    def supported_tools(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def build_default_registry(settings: Settings) -> ToolRegistry:
    """注册所有内置工具"""
    from gen_studio.tools.ai_image_generator import AiImageGeneratorTool
    from gen_studio.tools.veo3_fast import Veo3FastGeneratePreviewTool
    from gen_studio.tools.effects.animals_caught_on_camera import AnimalsCaughtOnCameraTool

    registry = ToolRegistry()
    registry.register("ai-image-generator", AiImageGeneratorTool.from_settings(settings))
    registry.register(
        "veo-3-fast-generate-preview",
        Veo3FastGeneratePreviewTool.from_settings(settings),
    )
    # 视频特效
    registry.register(
        "animals-caught-on-camera",
        AnimalsCaughtOnCameraTool.from_settings(settings),
    )
    return registry


_registry: Optional[ToolRegistry] = None


def get_tool_registry() -> ToolRegistry:
    """获取启动时构建的工具注册表"""
    global _registry
    if _registry is None:
        _registry = build_default_registry(get_settings())
    return _registry
