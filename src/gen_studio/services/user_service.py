"""
用户服务 - 用户同步与积分
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from gen_studio.core import get_settings, get_logger
from gen_studio.core.auth import CurrentUser
from gen_studio.core.database import engine as default_engine
from gen_studio.core.errors import ErrorKind, GenerationError
from gen_studio.models import User

logger = get_logger(__name__)


class UserService:
    """
    用户服务

    积分余额是唯一被并发修改的共享数据，扣减和返还都用单条条件 UPDATE 完成
    """

    def __init__(self, engine=None, default_points: Optional[int] = None):
        self.engine = engine or default_engine
        self.default_points = (
            default_points if default_points is not None else get_settings().default_user_points
        )

    def get_user(self, supabase_id: str) -> Optional[User]:
        with Session(self.engine) as session:
            return session.get(User, supabase_id)

    def sync_user(self, identity: CurrentUser) -> User:
        """
        同步登录用户

        首次出现时创建（赠送默认积分），之后只刷新登录时间、昵称和头像
        """
        now = datetime.now()
        with Session(self.engine) as session:
            user = session.get(User, identity.id)
            if user is None:
                user = User(
                    supabase_id=identity.id,
                    name=identity.name or "Unknown User",
                    email=identity.email or f"{identity.id}@users.noreply",
                    avatar=identity.avatar,
                    points=self.default_points,
                    last_login=now,
                )
                session.add(user)
                logger.info(f"创建新用户: {identity.id}")
            else:
                user.last_login = now
                user.updated_at = now
                if identity.name:
                    user.name = identity.name
                if identity.avatar:
                    user.avatar = identity.avatar
                session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def ensure_user(self, identity: CurrentUser) -> User:
        """
        确保登录用户已入库

        已存在时不做任何修改；并发首次创建时以先写入的为准
        """
        user = self.get_user(identity.id)
        if user is not None:
            return user
        try:
            return self.sync_user(identity)
        except IntegrityError:
            logger.info(f"用户已被并发创建: {identity.id}")
            user = self.get_user(identity.id)
            if user is None:
                raise
            return user

    def reserve_points(self, supabase_id: str, points: int) -> int:
        """
        扣减积分（余额充足才扣）

        Returns:
            扣减后的余额

        Raises:
            GenerationError: 用户不存在 / 积分不足
        """
        if points <= 0:
            raise ValueError("扣减积分必须大于0")

        statement = (
            update(User)
            .where(User.supabase_id == supabase_id)
            .where(User.points >= points)
            .values(points=User.points - points, updated_at=datetime.now())
        )
        with self.engine.begin() as conn:
            affected = conn.execute(statement).rowcount

        user = self.get_user(supabase_id)
        if affected == 0:
            if user is None:
                raise GenerationError(ErrorKind.USER_NOT_FOUND, "用户不存在")
            raise GenerationError(
                ErrorKind.INSUFFICIENT_POINTS,
                f"积分不足，当前积分：{user.points}，需要积分：{points}",
            )

        logger.info(f"积分扣除成功: 用户{supabase_id}扣除{points}积分，剩余{user.points}积分")
        return user.points

    def refund_points(self, supabase_id: str, points: int) -> None:
        """返还积分"""
        if points <= 0:
            return
        statement = (
            update(User)
            .where(User.supabase_id == supabase_id)
            .values(points=User.points + points, updated_at=datetime.now())
        )
        with self.engine.begin() as conn:
            conn.execute(statement)
        logger.info(f"积分已返还: 用户{supabase_id}返还{points}积分")


# 全局单例
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """获取用户服务单例"""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
