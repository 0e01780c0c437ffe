"""Request logger backed by the ``logging`` module."""

import logging

from ui.log_utils import format_savings


class PlainLogger:
    """Log requests as text lines; used where there is no terminal."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("image_proxy")

    def log_bypass(self, url: str, size: int, content_type: str) -> None:
        self._logger.info("Bypassing... Size: %s, type: %s", size, content_type)

    def log_compressed(self, url: str, original_size: int, size: int) -> None:
        self._logger.info(format_savings(original_size, size))

    def log_passthrough(self, url: str, reason: str) -> None:
        self._logger.warning("Passing through %s: %s", url, reason)

    def log_error(self, url: str, status: int, message: str) -> None:
        self._logger.error("%s %s: %s", status, url, message)
