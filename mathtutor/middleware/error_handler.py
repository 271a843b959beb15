"""
Error handling middleware and exception handlers.
"""
import logging
import traceback
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from mathtutor.core.config import settings
from mathtutor.core.exceptions import MathTutorError

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catches anything a route let escape and answers with JSON.

    Unhandled exceptions are logged with their traceback; the response only
    includes the exception text outside production.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except (HTTPException, StarletteHTTPException) as e:
            logger.warning(f"🚨 {request.method} {request.url.path} → {e.status_code}: {e.detail}")
            return JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail}
            )
        except MathTutorError as e:
            logger.warning(f"🚨 {request.method} {request.url.path} → {e.status_code}: {e.message}")
            return JSONResponse(status_code=e.status_code, content={"detail": e.to_detail()})
        except Exception as e:
            logger.error(
                f"💥 Unhandled {type(e).__name__} on {request.method} {request.url.path}: {e}\n"
                f"{traceback.format_exc()}"
            )
            content = {"detail": "Internal server error"}
            if not settings.is_production:
                content.update({
                    "detail": f"Internal server error: {str(e)}",
                    "type": type(e).__name__
                })
            return JSONResponse(status_code=500, content=content)


async def domain_error_handler(request: Request, exc: MathTutorError):
    """Domain errors raised from dependencies or routes."""
    logger.warning(f"⚠️ {request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Custom handler for 422 validation errors to provide detailed logging.
    """
    logger.warning(f"🚨 422 on {request.method} {request.url.path}")
    for error in exc.errors():
        logger.warning(
            f"   • Field: {' -> '.join(str(loc) for loc in error['loc'])} | "
            f"Message: {error['msg']} | Type: {error['type']}"
        )

    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc)}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without non-serializable ``ctx`` values."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


def setup_error_middleware(app):
    """
    Add error handling middleware and exception handlers to the FastAPI app.
    """
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_exception_handler(MathTutorError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("🛡️ Error handling middleware enabled")
