"""
登录态解析 - 校验 Supabase 签发的 JWT
"""
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from gen_studio.core.config import Settings, get_settings
from gen_studio.core.logging import get_logger

logger = get_logger(__name__)

ANONYMOUS_ID = "anonymous"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """当前请求的调用方身份"""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    provider: Optional[str] = None
    claims: dict = field(default_factory=dict)


def decode_access_token(token: str, settings: Settings) -> Optional[CurrentUser]:
    """
    解析访问令牌

    Returns:
        CurrentUser；令牌无效或未配置密钥时返回 None（按匿名处理）
    """
    if not settings.supabase_jwt_secret:
        logger.warning("未配置 SUPABASE_JWT_SECRET，忽略登录令牌")
        return None

    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError as e:
        logger.warning(f"登录令牌校验失败: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    metadata = payload.get("user_metadata") or {}
    app_metadata = payload.get("app_metadata") or {}
    email = payload.get("email")
    name = (
        metadata.get("user_name")
        or metadata.get("preferred_username")
        or metadata.get("full_name")
        or metadata.get("name")
        or (email.split("@")[0] if email else None)
    )
    return CurrentUser(
        id=user_id,
        email=email,
        name=name,
        avatar=metadata.get("avatar_url") or metadata.get("picture"),
        provider=app_metadata.get("provider"),
        claims=payload,
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[CurrentUser]:
    """可选登录：未携带或无效的令牌返回 None"""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials, get_settings())
