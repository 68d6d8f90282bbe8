"""Custom exceptions for the navigation filter."""

from typing import Any, Dict, Optional


class NavFilterError(Exception):
    """Base exception for navigation filter errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(NavFilterError):
    """Raised when the filter configuration is inconsistent."""


class StoreError(NavFilterError):
    """Raised when the settings store cannot be read or written."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Settings store {operation} failed: {reason}",
            {"operation": operation, "reason": reason},
        )


class ClassifierError(NavFilterError):
    """Raised inside the classifier client when a response is unusable."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Classifier request failed: {reason}", {"reason": reason})


class ListIndexError(NavFilterError):
    """Raised when removing a list entry by an index that does not exist."""

    def __init__(self, key: str, index: int) -> None:
        super().__init__(
            f"No entry at index {index} in {key}",
            {"key": key, "index": index},
        )
