"""FastAPI route handlers."""

from fastapi import Request, Response

from core.config import Config
from core.request_types import ProxyResponse


async def handle_image(request: Request, config: Config) -> Response:
    """Handle the image proxy endpoint."""
    image_proxy = request.app.state.image_proxy
    result = await image_proxy.handle(
        request.query_params.multi_items(),
        request.headers,
        config.defaults.server,
    )
    return render_response(result)


def render_response(result: ProxyResponse) -> Response:
    """Write a proxy result onto a Starlette response, header by header."""
    response = Response(content=result.body, status_code=result.status_code)
    for name, value in result.headers.items():
        response.headers[name] = value

    # Starlette fills in a length on its own; keep the header set as computed.
    if "content-length" not in result.headers:
        del response.headers["content-length"]
    return response
