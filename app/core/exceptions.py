from typing import Any, Dict, Optional
from fastapi import status

from app.core.constants import ErrorCodeEnum


class ExamPracticeError(Exception):
    code: ErrorCodeEnum = ErrorCodeEnum.INVALID_STATE
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(ExamPracticeError):
    code = ErrorCodeEnum.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class SaveFailedError(ExamPracticeError):
    code = ErrorCodeEnum.SAVE_FAILED
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class SubmitFailedError(ExamPracticeError):
    code = ErrorCodeEnum.SUBMIT_FAILED
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InvalidStateError(ExamPracticeError):
    code = ErrorCodeEnum.INVALID_STATE
    status_code = status.HTTP_409_CONFLICT


class NotAuthenticatedError(ExamPracticeError):
    code = ErrorCodeEnum.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED


class AccessDeniedError(ExamPracticeError):
    code = ErrorCodeEnum.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN


class AttemptStoreError(Exception):
    """Raised by the attempt store adapter; never leaves the session layer."""
