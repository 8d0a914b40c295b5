from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from upi_tracker.auth import AuthService
from upi_tracker.config import (
    API_PREFIX,
    COOKIE_SECURE,
    DEFAULT_JWT_SECRET,
    DEFAULT_SESSION_SECRET,
    JWT_SECRET,
    LOG_LEVEL,
    SESSION_MAX_AGE,
    SESSION_SECRET,
)
from upi_tracker.qr_service import QRCodeService
from upi_tracker.repository import Repository, build_repository
from upi_tracker.routes import router
from upi_tracker.utils.logger import logger


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        # Descarta "body"/"path"/"query" do início do caminho
        location = ".".join(str(item) for item in error["loc"][1:]) or str(error["loc"][0])
        parts.append(f"{location}: {error['msg']}")
    return "Validation error: " + "; ".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    logger.info(f"{request.method} {request.url.path} rejeitado: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Erro inesperado em {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(repository: Optional[Repository] = None) -> FastAPI:
    """Monta a aplicação com os serviços injetados em ``app.state``."""
    if JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET não definido; usando chave padrão insegura")
    if SESSION_SECRET == DEFAULT_SESSION_SECRET:
        logger.warning("SESSION_SECRET não definido; usando chave padrão insegura")

    app = FastAPI(title="UPI QR Tracker", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=SESSION_SECRET,
        max_age=SESSION_MAX_AGE,
        https_only=COOKIE_SECURE,
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.state.repository = repository if repository is not None else build_repository()
    app.state.qr_service = QRCodeService()
    app.state.auth_service = AuthService(app.state.repository)

    app.include_router(router, prefix=API_PREFIX)

    @app.get("/health", response_class=PlainTextResponse)
    def health_check() -> str:
        return "Server is healthy!"

    logger.info(f"UPI QR Tracker pronto ({type(app.state.repository).__name__})")
    return app


if __name__ == "__main__":
    # uvicorn chama create_app no processo do servidor: nada é montado no import
    uvicorn.run(
        "upi_tracker.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=LOG_LEVEL.lower(),
    )
