from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from app.core.constants import ExamAttemptStatusEnum, ExamTypeEnum
from app.schemas.response import APIResponse
from app.schemas.results import AttemptHistoryItem, Dashboard
from app.services.results import ResultsService
from app.utils import deps

router = APIRouter()


@router.get("/dashboard", response_model=APIResponse[Dashboard])
async def get_dashboard(
    results_service: ResultsService = Depends(deps.get_results_service),
    user_id: str = Depends(deps.require_user)
):
    dashboard = await results_service.get_dashboard(user_id)
    return APIResponse(message="Dashboard retrieved successfully", data=dashboard)


@router.get("/history", response_model=APIResponse[List[AttemptHistoryItem]])
async def get_history(
    results_service: ResultsService = Depends(deps.get_results_service),
    user_id: str = Depends(deps.require_user),
    status: Optional[ExamAttemptStatusEnum] = Query(None),
    subject: Optional[str] = Query(None),
    exam_type: Optional[ExamTypeEnum] = Query(None)
):
    history = await results_service.get_history(user_id, status=status, subject=subject, exam_type=exam_type)
    return APIResponse(message="Attempt history retrieved successfully", data=history)
