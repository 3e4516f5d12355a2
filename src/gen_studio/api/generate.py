"""
生成任务 API
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from gen_studio.api.schemas import ApiResult
from gen_studio.core.auth import CurrentUser, get_current_user
from gen_studio.core.logging import get_logger
from gen_studio.services.generate_service import GenerateService, get_generate_service

logger = get_logger(__name__)

router = APIRouter(tags=["生成任务"])


class GenerateRequest(BaseModel):
    """生成请求，parameters 由具体工具校验"""
    tool: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


@router.post("/generate", response_model=ApiResult)
async def generate(
    request: GenerateRequest,
    user: Optional[CurrentUser] = Depends(get_current_user),
    service: GenerateService = Depends(get_generate_service),
):
    """
    发起生成任务

    返回 record ID，前端拿它轮询 /record/{record_id}
    """
    logger.info(f"generate 请求: tool={request.tool}, 用户={user.id if user else 'anonymous'}")
    record_id = await service.generate(request.tool, request.parameters, user)
    return ApiResult.ok(record_id)
