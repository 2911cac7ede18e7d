import logging
import secrets
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .database import build_engine, init_db
from .routers import auth as auth_router


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    if not settings.jwt_secret:
        logger.warning("JWT_SECRET is not set, issuing tokens with a per-process key")
        settings = settings.model_copy(update={"jwt_secret": secrets.token_urlsafe(32)})

    app = FastAPI(title="Aiteken – Backend", version="0.1.0")
    app.state.settings = settings
    app.state.engine = build_engine(settings.sqlalchemy_url, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.on_event("startup")
    def on_startup():
        init_db(app.state.engine)

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.engine.dispose()

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router.router)

    return app


def run() -> None:
    app = create_app()
    logger.info("Server listening on port %s", default_settings.port)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
