"""Request pipeline shared by both entry points."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from core.compression import should_compress
from core.config import PLACEHOLDER_BODY, Config, DirectiveDefaults
from core.directives import read_directives
from core.exceptions import BadURLError, EncodingError, UpstreamError
from core.headers import HeaderRewriter
from core.protocols import Encoder, Fetcher, RequestLogger
from core.request_types import (
    CompressionDirectives,
    EncodeFailure,
    FetchedResource,
    ProxyResponse,
    TargetRequest,
)
from core.url_resolver import resolve_target
from services.encoder import PillowEncoder
from services.fetcher import HttpxFetcher

logger = logging.getLogger("image_proxy")

URL_PARAM = "url"


class ImageProxyService:
    """Fetch, maybe re-encode, and describe the response for one request.

    The result is a ``ProxyResponse``; each transport renders it in its own
    shape, so both entry points answer identically.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        encoder: Encoder,
        logger: RequestLogger,
        header_rewriter: HeaderRewriter | None = None,
        placeholder: str = PLACEHOLDER_BODY,
    ) -> None:
        self._fetcher = fetcher
        self._encoder = encoder
        self._logger = logger
        self._headers = header_rewriter or HeaderRewriter()
        self._placeholder = placeholder

    async def handle(
        self,
        query: Iterable[tuple[str, str]],
        headers: Mapping[str, Any],
        defaults: DirectiveDefaults,
    ) -> ProxyResponse:
        """Serve one proxied image request."""
        items = list(query)
        raw_url = _url_value(items)
        try:
            return await self._handle(items, headers, defaults)
        except BadURLError as e:
            self._logger.log_error(str(raw_url), 400, str(e))
            return _text_response(400, str(e))
        except EncodingError as e:
            self._logger.log_error(str(raw_url), 500, f"Conversion failed: {e}")
            return _text_response(500, str(e))
        except UpstreamError as e:
            self._logger.log_error(str(raw_url), 500, str(e))
            return _text_response(500, str(e))
        except Exception as e:
            logger.exception("Unexpected error proxying %s", raw_url)
            self._logger.log_error(str(raw_url), 500, str(e))
            return _text_response(500, str(e))

    async def _handle(
        self,
        items: list[tuple[str, str]],
        headers: Mapping[str, Any],
        defaults: DirectiveDefaults,
    ) -> ProxyResponse:
        extra = [(key, value) for key, value in items if key != URL_PARAM]
        target = resolve_target(_url_value(items), extra)
        if target is None:
            return _text_response(200, self._placeholder)

        directives = read_directives(headers, defaults)
        host = _header(headers, "host")
        request_headers = self._headers.pick_request_headers(headers)

        try:
            resource = await self._fetcher.fetch(target.url, request_headers)
        except UpstreamError as e:
            # Without an origin status (timeout, refused) the request cannot be served.
            if e.status_code is None:
                raise
            return self._upstream_failure(target, e, host)

        origin_headers = self._headers.strip_origin_headers(resource.headers)

        if not resource.complete:
            self._logger.log_passthrough(target.url, f"Error getting original size: {resource.read_error}")
            final_headers = self._headers.patch_security(origin_headers, host)
            final_headers["content-length"] = str(len(resource.body))
            return ProxyResponse(status_code=200, headers=final_headers, body=resource.body)

        original_size = len(resource.body)
        if not should_compress(resource.content_type, original_size, directives.use_webp):
            return self._bypass(target, resource, origin_headers, host)

        return await self._compress(target, resource, origin_headers, directives, host)

    def _bypass(
        self,
        target: TargetRequest,
        resource: FetchedResource,
        origin_headers: dict[str, str],
        host: str | None,
    ) -> ProxyResponse:
        size = len(resource.body)
        self._logger.log_bypass(target.url, size, resource.content_type)

        final_headers = self._headers.patch_security(origin_headers, host)
        if "svg" in resource.content_type:
            final_headers = self._headers.apply_svg_passthrough(final_headers)
        else:
            final_headers["content-length"] = str(size)
        return ProxyResponse(status_code=200, headers=final_headers, body=resource.body)

    async def _compress(
        self,
        target: TargetRequest,
        resource: FetchedResource,
        origin_headers: dict[str, str],
        directives: CompressionDirectives,
        host: str | None,
    ) -> ProxyResponse:
        original_size = len(resource.body)
        outcome = await self._encoder.encode(
            resource.body,
            directives.use_webp,
            directives.grayscale,
            directives.quality,
            original_size,
        )
        if isinstance(outcome, EncodeFailure):
            raise EncodingError(outcome.reason)

        self._logger.log_compressed(target.url, original_size, outcome.size)
        final_headers = self._headers.patch_security(
            {**origin_headers, **outcome.headers},
            host,
        )
        return ProxyResponse(status_code=200, headers=final_headers, body=outcome.body)

    def _upstream_failure(
        self,
        target: TargetRequest,
        error: UpstreamError,
        host: str | None,
    ) -> ProxyResponse:
        status = error.status_code
        self._logger.log_error(target.url, status, str(error))

        final_headers = self._headers.patch_security({}, host)
        final_headers["content-length"] = "0"
        if error.location:
            final_headers["location"] = error.location
        return ProxyResponse(status_code=status, headers=final_headers)


def _url_value(items: list[tuple[str, str]]) -> str | list[str] | None:
    urls = [value for key, value in items if key == URL_PARAM]
    if not urls:
        return None
    if len(urls) == 1:
        return urls[0]
    return urls


def _header(headers: Mapping[str, Any], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return str(value)
    return None


def _text_response(status_code: int, text: str) -> ProxyResponse:
    body = text.encode("utf-8")
    return ProxyResponse(
        status_code=status_code,
        headers={
            "content-type": "text/plain; charset=utf-8",
            "content-length": str(len(body)),
        },
        body=body,
        binary=False,
    )


def create_image_proxy(config: Config, logger: RequestLogger) -> ImageProxyService:
    """Wire the production fetcher and encoder into the pipeline."""
    return ImageProxyService(
        fetcher=HttpxFetcher(
            timeout=config.fetch.timeout,
            follow_redirects=config.fetch.follow_redirects,
        ),
        encoder=PillowEncoder(),
        logger=logger,
        placeholder=config.placeholder,
    )
