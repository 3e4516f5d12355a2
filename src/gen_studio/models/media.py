"""
媒体文件数据模型
"""
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

from .record import new_id
from .status import UploadSource


class Media(SQLModel, table=True):
    """
    媒体文件模型

    生成成功后转存到自有存储的图片/视频
    """
    __tablename__ = "medias"

    id: str = Field(default_factory=new_id, primary_key=True)

    supabase_id: Optional[str] = Field(default=None, index=True, description="用户ID")
    record_id: Optional[str] = Field(
        default=None, foreign_key="records.id", index=True, description="生成记录ID"
    )
    task_id: Optional[str] = Field(
        default=None, foreign_key="tasks.id", description="任务ID"
    )

    url: str = Field(description="自有存储的访问URL")
    type: Optional[str] = Field(default=None, description="MIME类型")
    media_type: str = Field(description="媒体类型: image/video")
    aspect_ratio: Optional[str] = Field(default=None, description="宽高比")
    upload_source: str = Field(default=UploadSource.USER.value, description="上传来源")

    # 标签分类
    category: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # 原始URL、文件名、大小等
    meta: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    is_delete: bool = Field(default=False, description="是否删除")
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
