"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from api.handlers import handle_image
from core.config import Config
from core.protocols import RequestLogger
from services.image_proxy import ImageProxyService, create_image_proxy


def create_app(
    config: Config,
    logger: RequestLogger,
    image_proxy: ImageProxyService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.image_proxy = image_proxy or create_image_proxy(config, logger)
        yield

    app = FastAPI(title="Bandwidth Hero Proxy", version="0.1.0", lifespan=lifespan)

    @app.get("/")
    async def proxy_image(request: Request):
        return await handle_image(request, config)

    @app.get("/api")
    async def proxy_image_api(request: Request):
        return await handle_image(request, config)

    return app
