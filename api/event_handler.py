"""Serverless function entry point (API-gateway style events)."""

import asyncio
import base64
import os
from pathlib import Path
from typing import Any

from core.config import Config, load_config
from core.protocols import RequestLogger
from core.request_types import ProxyResponse
from services.image_proxy import ImageProxyService, create_image_proxy
from ui.plain_logger import PlainLogger

CONFIG_ENV = "IMAGE_PROXY_CONFIG"


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous entry point invoked by the function runtime."""
    return asyncio.run(handle_event(event))


async def handle_event(
    event: dict[str, Any],
    image_proxy: ImageProxyService | None = None,
    config: Config | None = None,
    logger: RequestLogger | None = None,
) -> dict[str, Any]:
    """Serve one event and return the structured result."""
    config = config or event_config()
    image_proxy = image_proxy or create_image_proxy(config, logger or PlainLogger())
    headers = {key.lower(): value for key, value in (event.get("headers") or {}).items()}
    result = await image_proxy.handle(query_items(event), headers, config.defaults.event)
    return render_event(result)


def event_config() -> Config:
    """Use the config file named in the environment, else the defaults."""
    path = os.environ.get(CONFIG_ENV)
    if path:
        return load_config(Path(path))
    return Config()


def query_items(event: dict[str, Any]) -> list[tuple[str, str]]:
    """Flatten the event's query parameters into ordered pairs."""
    multi = event.get("multiValueQueryStringParameters") or {}
    if multi:
        return [(key, value) for key, values in multi.items() for value in values]
    single = event.get("queryStringParameters") or {}
    return list(single.items())


def render_event(result: ProxyResponse) -> dict[str, Any]:
    """Shape a proxy result as a function-event response."""
    if result.binary:
        body = base64.b64encode(result.body).decode("ascii")
    else:
        body = result.body.decode("utf-8")
    return {
        "statusCode": result.status_code,
        "headers": dict(result.headers),
        "body": body,
        "isBase64Encoded": result.binary,
    }
