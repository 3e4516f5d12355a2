"""
生成流程相关的状态枚举
"""
from enum import Enum


class GenerationStatus(str, Enum):
    """第三方任务状态"""

    WAITING = "waiting"
    PROCESSING = "processing"
    SUCCEED = "succeed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.SUCCEED, GenerationStatus.FAILED)


# 状态推进顺序：只能向终态前进，不能回退
STATUS_RANK: dict[GenerationStatus, int] = {
    GenerationStatus.WAITING: 0,
    GenerationStatus.UNKNOWN: 0,
    GenerationStatus.PROCESSING: 1,
    GenerationStatus.SUCCEED: 2,
    GenerationStatus.FAILED: 2,
}


class RecordStatus(str, Enum):
    """record 的请求状态（向第三方发起请求是否成功，与生成结果无关）"""

    WAITING = "waiting"
    FAIL = "fail"
    SUCCESS = "success"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class UploadSource(str, Enum):
    ADMIN = "admin"
    USER = "user"
