"""Shared fixtures for navigation filter tests."""

from typing import List, Optional, Tuple

import pytest

from navfilter.classifier import ClassificationResult
from navfilter.config import FilterConfig
from navfilter.decision_engine import DecisionEngine
from navfilter.enforcement import RedirectSink
from navfilter.errors import StoreError
from navfilter.list_store import ListStore
from navfilter.logger import FilterLogger
from navfilter.settings_store import MemorySettingsStore


class StubClassifier:
    """Returns a fixed result and records every call."""

    def __init__(self, label: str = "educational", score: float = 0.0) -> None:
        self.result = ClassificationResult(label, score)
        self.calls: List[Tuple[str, Optional[str]]] = []

    async def classify(self, url: str, title: Optional[str] = None) -> ClassificationResult:
        self.calls.append((url, title))
        return self.result


class FailingStore(MemorySettingsStore):
    """Settings store whose reads and writes always fail."""

    async def get(self, keys):
        raise StoreError("read", "disk unavailable")

    async def set(self, values):
        raise StoreError("write", "disk unavailable")


class RecordingSink(RedirectSink):
    def __init__(self) -> None:
        self.redirects: List[Tuple[str, str]] = []

    def redirect(self, tab_id: str, new_url: str) -> None:
        self.redirects.append((tab_id, new_url))


@pytest.fixture
def config() -> FilterConfig:
    return FilterConfig(api_key="test-key", block_page_url="http://filter.local/block")


@pytest.fixture
def logger() -> FilterLogger:
    return FilterLogger()


@pytest.fixture
def store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def list_store(store, config, logger) -> ListStore:
    return ListStore(store, config, logger)


@pytest.fixture
def classifier() -> StubClassifier:
    return StubClassifier()


@pytest.fixture
def engine(config, list_store, classifier, logger) -> DecisionEngine:
    return DecisionEngine(config, list_store, classifier, logger)
