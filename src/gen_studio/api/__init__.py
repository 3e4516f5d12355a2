"""
API 路由模块
"""
from fastapi import APIRouter
from .generate import router as generate_router
from .records import router as records_router
from .users import router as users_router
from .tools import router as tools_router

# 创建主路由
api_router = APIRouter(prefix="/api")

api_router.include_router(generate_router)
api_router.include_router(records_router)
api_router.include_router(users_router)
api_router.include_router(tools_router)

__all__ = ["api_router"]
