from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging

from mathtutor import __version__
from mathtutor.core.config import settings
from mathtutor.core.logging import setup_logging
from mathtutor.api.router import api_router
from mathtutor.middleware.error_handler import setup_error_middleware

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Math Tutor API",
    description="Backend API for the Math Tutor study planner and AI tutor",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Development error handling middleware
setup_error_middleware(app)

@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    # Security Headers
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response

# CORS middleware; the session header must be readable by browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.SESSION_HEADER_NAME],
)

# Include API routes
app.include_router(api_router)


@app.get("/")
async def root():
    """API information."""
    return {
        "message": "Math Tutor API",
        "version": __version__,
        "docs": "/docs",
        "status": "healthy"
    }


@app.get("/health")
async def health():
    """Liveness check; reports whether the AI gateway is configured."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "ai_enabled": settings.ai_enabled
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"🚀 Starting Math Tutor API on port {settings.PORT}")
    uvicorn.run("mathtutor.main:app", host="0.0.0.0", port=settings.PORT)
