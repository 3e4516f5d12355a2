"""
用户 API
"""
from typing import Optional
from fastapi import APIRouter, Depends

from gen_studio.api.schemas import ApiResult
from gen_studio.core.auth import CurrentUser, get_current_user
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/user", tags=["用户"])


@router.get("/info", response_model=ApiResult)
def get_user_info(
    user: Optional[CurrentUser] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """获取当前用户信息（首次访问时创建用户）"""
    if user is None:
        raise GenerationError(ErrorKind.UNAUTHENTICATED, "用户未登录")

    db_user = service.sync_user(user)
    return ApiResult.ok(
        {
            "supabase_id": db_user.supabase_id,
            "name": db_user.name,
            "email": db_user.email,
            "avatar": db_user.avatar,
            "points": db_user.points,
            "subscription_type": db_user.subscription_type,
            "last_login": db_user.last_login.isoformat() if db_user.last_login else None,
        }
    )
