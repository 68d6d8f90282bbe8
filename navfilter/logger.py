"""Logging utilities for navigation decisions and errors."""

import logging
from pathlib import Path
from typing import Optional


class FilterLogger:
    """Configure logging for access and error events.

    File handlers are attached only when a path is given, so embedding code
    and tests get console output without touching the filesystem.
    """

    def __init__(
        self,
        access_log_path: Optional[str] = None,
        error_log_path: Optional[str] = None,
        name: str = "navfilter",
    ) -> None:
        self.access_log_path = Path(access_log_path) if access_log_path else None
        self.error_log_path = Path(error_log_path) if error_log_path else None
        for path in (self.access_log_path, self.error_log_path):
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self._configure_handlers()

    def _configure_handlers(self) -> None:
        formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(message)s", "%Y-%m-%d %H:%M:%S"
        )

        if self.logger.handlers:
            return

        if self.access_log_path is not None:
            access_handler = logging.FileHandler(self.access_log_path)
            access_handler.setLevel(logging.INFO)
            access_handler.setFormatter(formatter)
            self.logger.addHandler(access_handler)

        if self.error_log_path is not None:
            error_handler = logging.FileHandler(self.error_log_path)
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)
            self.logger.addHandler(error_handler)

        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.INFO)
        stream_handler.setFormatter(formatter)
        self.logger.addHandler(stream_handler)

    def debug(self, message: str, *args: Optional[object]) -> None:
        self.logger.debug(message, *args)

    def info(self, message: str, *args: Optional[object]) -> None:
        self.logger.info(message, *args)

    def warning(self, message: str, *args: Optional[object]) -> None:
        self.logger.warning(message, *args)

    def error(self, message: str, *args: Optional[object]) -> None:
        self.logger.error(message, *args)
