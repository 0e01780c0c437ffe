import pytest

from core.config import Config
from fakes import FakeEncoder, FakeFetcher, RecordingLogger, noise_jpeg
from services.image_proxy import ImageProxyService


@pytest.fixture(scope="session")
def large_jpeg() -> bytes:
    """Roughly 1 MiB or more of hard-to-compress JPEG."""
    return noise_jpeg()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def make_service(recording_logger):
    """Build a pipeline around scripted collaborators."""

    def _make(fetcher: FakeFetcher, encoder=None) -> ImageProxyService:
        return ImageProxyService(
            fetcher=fetcher,
            encoder=encoder or FakeEncoder(),
            logger=recording_logger,
        )

    return _make
