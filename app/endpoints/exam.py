from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from app.core.constants import ExamTypeEnum
from app.core.exceptions import NotFoundError
from app.schemas.exam import Exam
from app.schemas.response import APIResponse
from app.schemas.session import SessionView
from app.services.identity import IdentityProvider
from app.services.session_manager import ExamSessionManager
from app.utils import deps

router = APIRouter()


@router.get("/", response_model=APIResponse[List[Exam]])
async def get_all_exams(
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    user_id: str = Depends(deps.require_user),
    skip: int = 0,
    limit: int = 100,
    exam_type: Optional[ExamTypeEnum] = Query(None),
    subject: Optional[str] = Query(None),
    year_level: Optional[int] = Query(None, ge=1, le=12)
):
    exams = await manager.question_bank.list_exams(
        exam_type=exam_type, subject=subject, year_level=year_level, skip=skip, limit=limit
    )
    return APIResponse(message="Exams retrieved successfully", data=exams)


@router.get("/{exam_id}", response_model=APIResponse[Exam])
async def get_exam(
    *,
    exam_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    user_id: str = Depends(deps.require_user)
):
    exam = await manager.question_bank.get_exam(exam_id)
    if not exam:
        raise NotFoundError("Exam not found.", details={"exam_id": exam_id})
    return APIResponse(message="Exam retrieved successfully", data=exam)


@router.post("/{exam_id}/attempts", response_model=APIResponse[SessionView], status_code=status.HTTP_201_CREATED)
async def start_exam_attempt(
    *,
    exam_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.start(exam_id, identity)
    return APIResponse(message="Exam attempt started successfully", data=session.view())
