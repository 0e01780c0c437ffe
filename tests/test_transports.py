import base64

import pytest
from fastapi.testclient import TestClient

from api.event_handler import handle_event, query_items, render_event
from app import create_app
from core.exceptions import UpstreamConnectionError
from core.request_types import ProxyResponse
from fakes import FakeEncoder, FakeFetcher, RecordingLogger, image_resource, upstream_status
from services.image_proxy import ImageProxyService

HOST = "proxy.example.com"


def _service(fetcher: FakeFetcher, encoder: FakeEncoder | None = None) -> ImageProxyService:
    return ImageProxyService(fetcher=fetcher, encoder=encoder or FakeEncoder(), logger=RecordingLogger())


def _event(query: dict[str, list[str]] | None, headers: dict[str, str] | None = None) -> dict:
    return {
        "multiValueQueryStringParameters": query,
        "headers": {"Host": HOST, **(headers or {})},
    }


async def _both(service: ImageProxyService, config, query: dict[str, list[str]] | None, headers=None):
    """Run the same request through the event handler and the FastAPI app."""
    event_result = await handle_event(_event(query, headers), image_proxy=service, config=config)

    params = [(key, value) for key, values in (query or {}).items() for value in values]
    with TestClient(create_app(config, RecordingLogger(), image_proxy=service)) as client:
        http_result = client.get("/", params=params, headers={"host": HOST, **(headers or {})})
    return event_result, http_result


def _event_body(event_result: dict) -> bytes:
    if event_result["isBase64Encoded"]:
        return base64.b64decode(event_result["body"])
    return event_result["body"].encode("utf-8")


def _assert_same(event_result: dict, http_result) -> None:
    assert event_result["statusCode"] == http_result.status_code
    assert event_result["headers"] == dict(http_result.headers)
    assert _event_body(event_result) == http_result.content


@pytest.mark.asyncio
async def test_placeholder_on_both_transports(config):
    event_result, http_result = await _both(_service(FakeFetcher()), config, None)

    _assert_same(event_result, http_result)
    assert event_result["statusCode"] == 200
    assert event_result["body"] == "bandwidth-hero-proxy"
    assert event_result["isBase64Encoded"] is False


@pytest.mark.asyncio
async def test_compressed_image_matches_across_transports(config):
    # Same explicit directives so the differing defaults do not matter.
    headers = {"x-image-lite-bw": "1", "x-image-lite-level": "40", "x-image-lite-jpeg": "1"}
    fetcher = FakeFetcher(image_resource(b"x" * 600_000, "image/jpeg", {"content-security-policy": "img-src 'self'"}))
    event_result, http_result = await _both(_service(fetcher), config, {"url": ["https://example.com/a.jpg"]}, headers)

    _assert_same(event_result, http_result)
    assert event_result["isBase64Encoded"] is True
    assert event_result["headers"]["x-bytes-saved"] == "300000"
    assert event_result["headers"]["content-security-policy"] == f"img-src https://{HOST} 'self'"


@pytest.mark.asyncio
async def test_svg_matches_across_transports(config):
    svg = b"<svg xmlns='http://www.w3.org/2000/svg'>" + b" " * 10_240 + b"</svg>"
    fetcher = FakeFetcher(image_resource(svg, "image/svg+xml"))
    event_result, http_result = await _both(_service(fetcher), config, {"url": ["https://example.com/a.svg"]})

    _assert_same(event_result, http_result)
    assert http_result.content == svg
    assert http_result.headers["content-encoding"] == "identity"
    assert "content-length" not in http_result.headers


@pytest.mark.asyncio
async def test_upstream_failure_matches_across_transports(config):
    fetcher = FakeFetcher(error=upstream_status(404))
    event_result, http_result = await _both(_service(fetcher), config, {"url": ["https://example.com/a.jpg"]})

    _assert_same(event_result, http_result)
    assert http_result.status_code == 404


@pytest.mark.asyncio
async def test_unreachable_origin_matches_across_transports(config):
    fetcher = FakeFetcher(error=UpstreamConnectionError("refused"))
    event_result, http_result = await _both(_service(fetcher), config, {"url": ["https://example.com/a.jpg"]})

    _assert_same(event_result, http_result)
    assert http_result.status_code == 500
    assert http_result.content == b"refused"


@pytest.mark.asyncio
async def test_encoding_failure_matches_across_transports(config):
    fetcher = FakeFetcher(image_resource(b"x" * 600_000, "image/jpeg"))
    service = _service(fetcher, FakeEncoder(failure="bad pixels"))
    event_result, http_result = await _both(service, config, {"url": ["https://example.com/a.jpg"]})

    _assert_same(event_result, http_result)
    assert http_result.status_code == 500
    assert http_result.text == "bad pixels"


@pytest.mark.asyncio
async def test_transports_apply_their_own_defaults(config):
    encoder = FakeEncoder()
    fetcher = FakeFetcher(image_resource(b"x" * 600_000, "image/jpeg"))
    await _both(_service(fetcher, encoder), config, {"url": ["https://example.com/a.jpg"]})

    event_call, http_call = encoder.calls
    assert (event_call["use_webp"], event_call["grayscale"]) == (False, True)
    assert (http_call["use_webp"], http_call["grayscale"]) == (True, False)


def test_api_route_serves_the_same_handler(config):
    with TestClient(create_app(config, RecordingLogger(), image_proxy=_service(FakeFetcher()))) as client:
        response = client.get("/api")
    assert response.status_code == 200
    assert response.text == "bandwidth-hero-proxy"


def test_query_items_prefers_multi_value_parameters():
    event = {
        "queryStringParameters": {"url": "b", "x": "2"},
        "multiValueQueryStringParameters": {"url": ["a", "b"], "x": ["1", "2"]},
    }
    assert query_items(event) == [("url", "a"), ("url", "b"), ("x", "1"), ("x", "2")]


def test_query_items_falls_back_to_single_values():
    assert query_items({"queryStringParameters": {"url": "a"}}) == [("url", "a")]
    assert query_items({"queryStringParameters": None}) == []


def test_render_event_encodes_binary_bodies():
    rendered = render_event(ProxyResponse(status_code=200, headers={"content-type": "image/jpeg"}, body=b"\xff\xd8"))
    assert rendered == {
        "statusCode": 200,
        "headers": {"content-type": "image/jpeg"},
        "body": base64.b64encode(b"\xff\xd8").decode("ascii"),
        "isBase64Encoded": True,
    }
