import os
from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Exam Practice API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Identity provider access tokens (HS256)
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = "authenticated"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./exam_practice.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Exam attempt timing
    DEFAULT_DURATION_MINUTES: int = 30
    AUTOSAVE_DEBOUNCE_SECONDS: float = 2.0
    AUTOSAVE_INTERVAL_SECONDS: int = 30
    COUNTDOWN_TICK_SECONDS: int = 1
    SCHEDULER_ENABLED: bool = True

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    def __init__(self, **data):
        super().__init__(**data)
        if os.getenv("TESTING") == "true":
            self.SCHEDULER_ENABLED = False

    class Config:
        env_file = ".env"

settings = Settings()
