"""
生成记录数据模型
"""
import uuid
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .status import RecordStatus


def new_id() -> str:
    """生成随机主键"""
    return uuid.uuid4().hex


class Record(SQLModel, table=True):
    """
    生成记录模型

    用户每点击一次「生成」产生一条；status 只反映向第三方发起请求是否成功
    """
    __tablename__ = "records"

    id: str = Field(default_factory=new_id, primary_key=True)

    # 用户ID，未登录为 anonymous
    supabase_id: str = Field(index=True, description="用户ID")

    type: str = Field(description="生成类型: image/video")
    tool: str = Field(index=True, description="使用的工具")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="校验后的生成参数",
    )

    status: str = Field(
        default=RecordStatus.WAITING.value,
        description="状态: waiting/fail/success",
    )
    error_message: Optional[str] = Field(default=None, description="错误信息")

    expected_count: int = Field(default=1, description="期望生成数量")
    points_count: int = Field(default=0, description="积分消耗")
    is_public: bool = Field(default=False, description="是否公开")
    is_delete: bool = Field(default=False, description="是否删除")

    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
