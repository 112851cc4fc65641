from fastapi import APIRouter, Depends, Query

from app.core.constants import ReviewFilterEnum
from app.schemas.exam_attempt import CompletedAttempt
from app.schemas.response import APIResponse
from app.schemas.results import AttemptResults
from app.schemas.session import (
    AnswerIn, IntegrityEventIn, NavigateIn, SaveStatusReport, SessionAction, SessionView
)
from app.services.identity import IdentityProvider
from app.services.results import ResultsService
from app.services.session_manager import ExamSessionManager
from app.utils import deps

router = APIRouter()


@router.get("/{attempt_id}", response_model=APIResponse[SessionView])
async def get_attempt(
    *,
    attempt_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    return APIResponse(message="Exam attempt retrieved successfully", data=session.view())


@router.put("/{attempt_id}/answers", response_model=APIResponse[SessionAction])
async def select_answer(
    *,
    attempt_id: str,
    answer_in: AnswerIn,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    outcome = session.select_answer(answer_in.question_id, answer_in.answer)
    return APIResponse(
        message="Answer recorded" if outcome.applied else "Answer ignored",
        data=SessionAction(outcome=outcome, session=session.view())
    )


@router.post("/{attempt_id}/flags/{question_id}", response_model=APIResponse[SessionAction])
async def toggle_flag(
    *,
    attempt_id: str,
    question_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    outcome = session.toggle_flag(question_id)
    return APIResponse(
        message="Flag toggled" if outcome.applied else "Flag ignored",
        data=SessionAction(outcome=outcome, session=session.view())
    )


@router.post("/{attempt_id}/navigate", response_model=APIResponse[SessionAction])
async def navigate(
    *,
    attempt_id: str,
    navigate_in: NavigateIn,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    outcome = session.go_to(navigate_in.index)
    return APIResponse(
        message="Moved to question" if outcome.applied else "Navigation ignored",
        data=SessionAction(outcome=outcome, session=session.view())
    )


@router.post("/{attempt_id}/integrity-events", response_model=APIResponse[SessionAction])
async def record_integrity_event(
    *,
    attempt_id: str,
    event_in: IntegrityEventIn,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    outcome = session.record_integrity_event(event_in.event_type)
    return APIResponse(
        message="Event recorded" if outcome.applied else "Event ignored",
        data=SessionAction(outcome=outcome, session=session.view())
    )


@router.post("/{attempt_id}/save", response_model=APIResponse[SaveStatusReport])
async def save_attempt(
    *,
    attempt_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    report = await session.save()
    return APIResponse(message="Progress saved", data=report)


@router.post("/{attempt_id}/submit", response_model=APIResponse[CompletedAttempt])
async def submit_attempt(
    *,
    attempt_id: str,
    manager: ExamSessionManager = Depends(deps.get_session_manager),
    identity: IdentityProvider = Depends(deps.get_identity),
    user_id: str = Depends(deps.require_user)
):
    session = await manager.open(attempt_id, identity)
    record = await session.submit()
    return APIResponse(message="Exam attempt submitted successfully", data=record)


@router.get("/{attempt_id}/results", response_model=APIResponse[AttemptResults])
async def get_attempt_results(
    *,
    attempt_id: str,
    review_filter: ReviewFilterEnum = Query(ReviewFilterEnum.ALL),
    results_service: ResultsService = Depends(deps.get_results_service),
    user_id: str = Depends(deps.require_user)
):
    results = await results_service.get_attempt_results(attempt_id, user_id, review_filter=review_filter)
    return APIResponse(message="Exam results retrieved successfully", data=results)
