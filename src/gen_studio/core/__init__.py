"""
Core 模块 - 核心配置和工具
"""
from .config import Settings, get_settings
from .logging import setup_logging, get_logger
from .errors import ErrorKind, GenerationError

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "ErrorKind",
    "GenerationError",
]
