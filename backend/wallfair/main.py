import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wallfair.admin_panel import setup_admin
from wallfair.api.v1.routers import api_router
from wallfair.core.config import Settings
from wallfair.core.context import AppContext
from wallfair.core.exceptions import AppError
from wallfair.db.database import init_db
from wallfair.sockets.chat_socket import router as chat_socket_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, ctx: Optional[AppContext] = None) -> FastAPI:
    """
    Builds the API. The context (DB engine, Redis, external clients) is
    created here and stored on app.state, nothing is module global.

    Served as a factory: uvicorn wallfair.main:create_app --factory
    """
    settings = settings or (ctx.settings if ctx else Settings())
    ctx = ctx or AppContext.from_settings(settings)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Wallfair API")
    app.state.ctx = ctx

    # CORS for the web client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} raised an unexpected error")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.on_event("startup")
    async def on_startup():
        await init_db(ctx.engine)

    @app.on_event("shutdown")
    async def on_shutdown():
        await ctx.close()

    app.include_router(api_router)
    app.include_router(chat_socket_router)
    setup_admin(app, ctx)

    @app.get("/")
    async def root():
        return {"message": "Blockchain meets Prediction Markets made Simple. - Wallfair."}

    return app
