"""
服务模块
"""
from .generate_service import GenerateService, get_generate_service
from .status_service import StatusService, get_status_service
from .user_service import UserService, get_user_service

__all__ = [
    "GenerateService",
    "get_generate_service",
    "StatusService",
    "get_status_service",
    "UserService",
    "get_user_service",
]
