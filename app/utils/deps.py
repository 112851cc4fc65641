from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.exceptions import NotAuthenticatedError
from app.services.identity import BearerTokenIdentity, IdentityProvider
from app.services.results import ResultsService
from app.services.session_manager import ExamSessionManager

http_bearer = HTTPBearer(auto_error=False)

def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> IdentityProvider:
    return BearerTokenIdentity(credentials.credentials if credentials else None)

def require_user(identity: IdentityProvider = Depends(get_identity)) -> str:
    user_id = identity.current_user_id()
    if not user_id:
        raise NotAuthenticatedError("Could not validate credentials")
    return user_id

def get_session_manager(request: Request) -> ExamSessionManager:
    return request.app.state.session_manager

def get_results_service(
    manager: ExamSessionManager = Depends(get_session_manager)
) -> ResultsService:
    return ResultsService(manager.question_bank, manager.store)
