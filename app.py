#!/usr/bin/env python3
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException
from boards import BoardService
from database import DatabaseManager, TableNames, timestamp
from endpoints import get_all_routers
from exceptions import StorageError, ValidationError
from models import ErrorResponse
from security import PasswordHasher
from config import (DB_PATH, TABLE_SUFFIX, BCRYPT_ROUNDS, ALLOWED_ORIGINS, MAX_REQUEST_SIZE_MB,
                    HTTP_BAD_REQUEST, HTTP_REQUEST_ENTITY_TOO_LARGE, HTTP_INTERNAL_SERVER_ERROR)

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_SIZE_MB * 1024 * 1024:
            return JSONResponse(
                status_code=HTTP_REQUEST_ENTITY_TOO_LARGE,
                content=ErrorResponse(error="RequestEntityTooLarge", message="Request entity too large").model_dump()
            )

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith("/api/"):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        return response


def create_app(db_path: str = DB_PATH, table_suffix: str = TABLE_SUFFIX,
               bcrypt_rounds: int = BCRYPT_ROUNDS) -> FastAPI:
    app = FastAPI(title="Message Board API", description="Anonymous message board with threads and replies",
                  version="1.0.0")

    db = DatabaseManager(db_path, TableNames.with_suffix(table_suffix))
    boards = BoardService(db, PasswordHasher(rounds=bcrypt_rounds))
    app.state.boards = boards

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"]
    )

    for router in get_all_routers(boards):
        app.include_router(router)

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=HTTP_BAD_REQUEST,
            content=ErrorResponse(error=exc.__class__.__name__, message=str(exc)).model_dump()
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=HTTP_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="StorageError", message="The message board store is unavailable").model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.__class__.__name__, message=str(exc.detail)).model_dump()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=HTTP_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="InternalServerError", message="An unexpected error occurred").model_dump()
        )

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": timestamp(),
            "tables": [db.tables.threads, db.tables.replies],
        }

    @app.on_event("startup")
    async def startup_event():
        await db.initialize()

    return app


app = create_app()
