"""
数据模型模块
"""
from .status import GenerationStatus, RecordStatus, MediaType, UploadSource, STATUS_RANK
from .user import User
from .record import Record
from .task import Task
from .media import Media

__all__ = [
    "GenerationStatus",
    "RecordStatus",
    "MediaType",
    "UploadSource",
    "STATUS_RANK",
    "User",
    "Record",
    "Task",
    "Media",
]
