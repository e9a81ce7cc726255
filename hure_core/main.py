import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hure_core.core.config import settings
import hure_core.models  # noqa: F401  # force model registration

from hure_core.api.v1.auth import router as auth_router
from hure_core.api.v1.clinics import router as clinics_router
from hure_core.api.v1.employer import router as employer_router
from hure_core.api.v1.onboard import router as onboard_router
from hure_core.api.v1.plans import router as plans_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def error_body(detail) -> dict:
    """
    Every failure goes out as {"success": false, "error": "..."}.
    Dict details keep their extra keys (e.g. needsFirstLogin, code).
    """
    if isinstance(detail, dict):
        extra = {k: v for k, v in detail.items() if k != "message"}
        return {"success": False, "error": str(detail.get("message", "Request failed")), **extra}
    return {"success": False, "error": str(detail)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_body("Server error"))


def create_application() -> FastAPI:
    configure_logging()

    app = FastAPI(title="HURE Core API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "hure-core"}

    @app.get("/api/health")
    def health():
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    # Routers
    app.include_router(onboard_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(clinics_router, prefix="/api")
    app.include_router(plans_router, prefix="/api")
    app.include_router(employer_router, prefix="/api")

    return app


app = create_application()
