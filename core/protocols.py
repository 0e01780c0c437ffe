"""Shared protocol definitions."""

from typing import Protocol

from core.request_types import EncodeOutcome, FetchedResource


class Fetcher(Protocol):
    """Performs the outbound GET for the target image."""

    async def fetch(self, url: str, headers: dict[str, str]) -> FetchedResource: ...


class Encoder(Protocol):
    """Re-encodes image bytes into a smaller representation."""

    async def encode(
        self,
        data: bytes,
        use_webp: bool,
        grayscale: bool,
        quality: int,
        original_size: int,
    ) -> EncodeOutcome: ...


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard or plain logging)."""

    def log_bypass(self, url: str, size: int, content_type: str) -> None: ...
    def log_compressed(self, url: str, original_size: int, size: int) -> None: ...
    def log_passthrough(self, url: str, reason: str) -> None: ...
    def log_error(self, url: str, status: int, message: str) -> None: ...
