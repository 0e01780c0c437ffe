"""Outbound fetch of the origin image."""

import httpx

from core.exceptions import (
    BadURLError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.request_types import FetchedResource


class HttpxFetcher:
    """Fetch images with a fresh httpx client per request."""

    def __init__(
        self,
        timeout: float | None = None,
        follow_redirects: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._follow_redirects = follow_redirects
        self._transport = transport

    async def fetch(self, url: str, headers: dict[str, str]) -> FetchedResource:
        """GET ``url``; raise UpstreamError unless the origin answers 2xx."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, headers=headers) as response:
                    if not response.is_success:
                        raise UpstreamError(
                            f"Origin returned {response.status_code}",
                            status_code=response.status_code,
                            location=_absolute_location(response),
                        )
                    return await self._read(response)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise BadURLError(f"Invalid URL: {url!r} ({e})") from e
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Origin timeout: {e}") from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(f"Origin connection error: {e}") from e

    async def _read(self, response: httpx.Response) -> FetchedResource:
        """Read the body, keeping what arrived if the stream breaks."""
        chunks: list[bytes] = []
        read_error = None
        try:
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
        except httpx.RequestError as e:
            read_error = f"{type(e).__name__}: {e}"

        return FetchedResource(
            body=b"".join(chunks),
            content_type=response.headers.get("content-type", ""),
            headers=dict(response.headers),
            read_error=read_error,
        )


def _absolute_location(response: httpx.Response) -> str | None:
    """Resolve a redirect target against the origin URL."""
    location = response.headers.get("location")
    if not location:
        return None
    return str(response.url.join(location))
