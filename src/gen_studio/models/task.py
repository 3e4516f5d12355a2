"""
第三方任务数据模型
"""
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .record import new_id
from .status import GenerationStatus


class Task(SQLModel, table=True):
    """
    第三方任务模型

    与 Record 一对一，记录第三方返回的任务ID和最近一次观察到的状态
    """
    __tablename__ = "tasks"

    id: str = Field(default_factory=new_id, primary_key=True)
    record_id: str = Field(
        foreign_key="records.id",
        unique=True,
        index=True,
        description="关联的生成记录ID",
    )
    task_id: str = Field(description="第三方任务ID")

    status: str = Field(
        default=GenerationStatus.WAITING.value,
        description="状态: waiting/processing/succeed/failed/unknown",
    )
    # 最近一次归一化后的状态结果
    result: Optional[dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    submit_at: datetime = Field(default_factory=datetime.now, description="提交时间")
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
