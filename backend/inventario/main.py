"""Application entry point for the inventory API service."""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventario.api.routes.ai import router as ai_router
from inventario.api.routes.approvals import router as approvals_router
from inventario.api.routes.audit_log import router as audit_log_router
from inventario.api.routes.auth import router as auth_router
from inventario.api.routes.database import router as database_router
from inventario.api.routes.equipment import router as equipment_router
from inventario.api.routes.licenses import router as licenses_router
from inventario.api.routes.settings import router as settings_router
from inventario.api.routes.users import router as users_router
from inventario.core.config import settings
from inventario.core.db import get_session
from inventario.core.db_errors import database_error_message
from inventario.core.logging import setup_logging
from inventario.core.middleware import BodySizeLimitMiddleware, RequestContextLogMiddleware
from inventario.core.migrations import run_migrations
from inventario.core.rate_limit import init_rate_limiter
from inventario.core.report_ai import ReportServiceError

setup_logging()

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

init_rate_limiter(app)

app.add_middleware(RequestContextLogMiddleware)


def _cors_origins() -> list[str]:
    if settings.ENV == "prod":
        if not settings.CORS_ALLOWED_ORIGINS:
            raise RuntimeError("CORS_ALLOWED_ORIGINS must be configured for prod")
        return settings.CORS_ALLOWED_ORIGINS
    return settings.CORS_ALLOWED_ORIGINS or ["http://localhost:5173", "http://localhost:3000"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)


# Every error leaves the API as {"message": ...}; the web client reads only that key.


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Requisição inválida") if errors else "Requisição inválida"
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    message = database_error_message(exc)
    logger.bind(path=str(request.url.path), error=message).error("database_error")
    return JSONResponse(status_code=500, content={"message": message})


@app.exception_handler(ReportServiceError)
async def report_exception_handler(request: Request, exc: ReportServiceError):
    logger.bind(path=str(request.url.path), error=str(exc)).error("report_generation_failed")
    return JSONResponse(status_code=500, content={"message": str(exc)})


@app.on_event("startup")
async def startup_event():
    """Bring the schema up to date before serving traffic."""

    report = await run_migrations()
    if report.failed:
        logger.bind(failed=report.failed).warning("startup_with_failed_migrations")


@app.get("/api/healthz", tags=["system"], summary="Liveness probe")
def healthz() -> dict[str, str]:
    """Simple liveness probe that load balancers and monitors can call."""

    return {"status": "ok"}


@app.get("/api/readyz", tags=["system"], summary="Readiness probe")
async def readyz(session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(text("SELECT 1"))
        return {"ready": True}
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database not reachable")


app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(equipment_router, prefix="/api")
app.include_router(licenses_router, prefix="/api")
app.include_router(approvals_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(audit_log_router, prefix="/api")
app.include_router(database_router, prefix="/api")
app.include_router(ai_router, prefix="/api")
