from __future__ import annotations

import uuid
from dataclasses import asdict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.errors import DomainError, NotFoundError, build_error_envelope
from libs.common.logging import get_logger


def register_exception_handlers(app: FastAPI, logger_name: str) -> None:
    logger = get_logger(logger_name)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        envelope = build_error_envelope(exc.error_code, exc.message, exc.retryable)
        logger.warning(
            "domain_error",
            path=request.url.path,
            method=request.method,
            trace_id=envelope.trace_id,
            error_code=exc.error_code,
            message=exc.message,
            retryable=exc.retryable,
        )
        status_code = 404 if isinstance(exc, NotFoundError) else 400
        return JSONResponse(status_code=status_code, content=asdict(envelope))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.exception(
            "unhandled_error",
            path=request.url.path,
            method=request.method,
            trace_id=trace_id,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected internal error occurred.",
                "trace_id": trace_id,
                "retryable": True,
            },
        )
