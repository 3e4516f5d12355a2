"""
任务状态查询 API
"""
from fastapi import APIRouter, Depends

from gen_studio.api.schemas import ApiResult
from gen_studio.services.status_service import StatusService, get_status_service

router = APIRouter(prefix="/record", tags=["任务状态"])


@router.post("/{record_id}", response_model=ApiResult)
async def get_record_status(
    record_id: str,
    service: StatusService = Depends(get_status_service),
):
    """查询任务状态，成功时返回转存后的 URL"""
    payload = await service.get_status(record_id)
    return ApiResult.ok(payload)
