from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Database settings
    ARANGO_URL: str = "http://localhost:8529"
    ARANGO_USERNAME: str = "root"
    ARANGO_PASSWORD: str = "openSesame"
    ARANGO_DATABASE: str = "mathtutor"

    # CORS settings
    FRONTEND_URL: str = "http://localhost:5173"

    # AI gateway settings (planner + tutor)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Session identity
    SESSION_COOKIE_NAME: str = "mathTutorSessionId"
    SESSION_HEADER_NAME: str = "X-Session-Id"
    SESSION_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 365

    # Plan generation
    REMOTE_PLAN_TIMEOUT_SECONDS: float = 10.0
    PERSIST_MAX_ATTEMPTS: int = 3
    PERSIST_RETRY_DELAY_SECONDS: float = 1.0

    # Progress state machine
    QUIZ_MAX_MISTAKES: int = 2
    EXERCISES_PER_TASK: int = 4

    # Railway/Production settings
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() in ["production", "prod"]

    @property
    def allowed_origins(self) -> list:
        """Get list of allowed CORS origins."""
        if self.is_production:
            return [self.FRONTEND_URL]
        return [
            self.FRONTEND_URL,
            "http://localhost:5173",
            "http://localhost:8080",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080"
        ]

    @property
    def ai_enabled(self) -> bool:
        """Whether the remote AI gateway can be called at all."""
        return bool(self.GEMINI_API_KEY)

settings = Settings()
