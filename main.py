from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import ExamPracticeError
from app.core.logging import configure_logging
from app.core.scheduler import start_scheduler, stop_scheduler
from app.endpoints import attempts, exam, results
from app.middleware.exceptions import exam_error_handler, global_exception_handler, validation_exception_handler
from app.middleware.logging import RequestLoggingMiddleware
from app.services.session_manager import ExamSessionManager

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(ExamPracticeError, exam_error_handler)
app.add_exception_handler(StarletteHTTPException, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(exam.router, prefix="/exams", tags=["Exams"])
app.include_router(attempts.router, prefix="/attempts", tags=["Attempts"])
app.include_router(results.router, prefix="/results", tags=["Results"])

@app.on_event("startup")
async def startup_event():
    configure_logging()
    if getattr(app.state, "session_manager", None) is None:
        app.state.session_manager = ExamSessionManager.from_settings()
    start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    manager = getattr(app.state, "session_manager", None)
    if manager is not None:
        await manager.shutdown()
    stop_scheduler()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
