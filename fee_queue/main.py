import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fee_queue.api.v1.admin.router import router as admin_router
from fee_queue.api.v1.auth.router import router as auth_router
from fee_queue.api.v1.payments.router import router as payments_router
from fee_queue.api.v1.queue.router import router as queue_router
from fee_queue.api.v1.student.router import router as student_router
from fee_queue.core.config import settings
from fee_queue.core.exceptions import StorageError

# Register every mapped class before the first request configures mappers
import fee_queue.auth.models  # noqa: F401
import fee_queue.core.models  # noqa: F401

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    error = StorageError()
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "message": error.message},
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message},
    )


def create_app() -> FastAPI:
    _configure_logging()
    app = FastAPI(title="Fee Queue Backend")

    # CORS: allow the student and accountant frontends to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every error leaves as {"success": false, "message": ...}
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(student_router)
    app.include_router(queue_router)
    app.include_router(payments_router)
    app.include_router(admin_router)

    return app


app = create_app()
