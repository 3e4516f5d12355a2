"""
用户数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    用户模型

    主键使用登录服务（Supabase）签发的用户ID
    """
    __tablename__ = "users"

    supabase_id: str = Field(primary_key=True, description="Supabase 用户ID")
    name: str = Field(description="用户名")
    email: str = Field(index=True, unique=True, description="邮箱")
    avatar: Optional[str] = Field(default=None, description="头像URL")

    # 积分余额，生成时按工具消耗扣除
    points: int = Field(default=10, description="积分")
    subscription_type: str = Field(default="free", description="订阅类型")

    last_login: Optional[datetime] = Field(default=None, description="最后登录时间")
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
