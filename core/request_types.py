"""Shared request data types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TargetRequest:
    """Resolved origin URL plus the extra query pairs folded into it."""

    url: str
    extra_params: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class CompressionDirectives:
    """How the image should be re-encoded."""

    use_webp: bool
    grayscale: bool
    quality: int


@dataclass(frozen=True)
class FetchedResource:
    """Image fetched from the origin.

    ``read_error`` is set when the body stream broke off; ``body`` then
    holds whatever arrived before the failure.
    """

    body: bytes
    content_type: str
    headers: dict[str, str]
    read_error: str | None = None

    @property
    def complete(self) -> bool:
        return self.read_error is None


@dataclass(frozen=True)
class EncodeSuccess:
    body: bytes
    size: int
    bytes_saved: int
    content_type: str
    headers: dict[str, str]


@dataclass(frozen=True)
class EncodeFailure:
    reason: str


EncodeOutcome = EncodeSuccess | EncodeFailure


@dataclass(frozen=True)
class ProxyResponse:
    """Transport-neutral response both entry points render."""

    status_code: int
    headers: dict[str, str]
    body: bytes = b""
    binary: bool = True
