"""Wires the decision engine to enforcement for incoming navigation events."""

from typing import Optional

import httpx

from navfilter.classifier import ClassifierClient
from navfilter.config import FilterConfig
from navfilter.decision_engine import Decision, DecisionEngine, NavigationEvent, Stage
from navfilter.enforcement import Enforcer, RedirectSink, TabTracker
from navfilter.list_editor import ListEditor
from navfilter.list_store import ListStore
from navfilter.logger import FilterLogger
from navfilter.settings_store import SettingsStore


class NavigationFilter:
    """Entry point for navigation events from any source."""

    def __init__(
        self,
        engine: DecisionEngine,
        enforcer: Enforcer,
        tracker: TabTracker,
    ) -> None:
        self.engine = engine
        self.enforcer = enforcer
        self.tracker = tracker

    @property
    def list_store(self) -> ListStore:
        return self.engine.list_store

    async def initialize(self) -> None:
        await self.list_store.initialize()

    async def on_before_navigate(self, event: NavigationEvent, sink: RedirectSink) -> Decision:
        if not event.is_top_level_http:
            return Decision.allow(Stage.SKIPPED)
        token = self.tracker.begin(event.tab_id)
        try:
            decision = await self.engine.decide(event)
            self.enforcer.enforce(event, decision, token, sink)
            return decision
        finally:
            self.tracker.finish(event.tab_id, token)


def build_navigation_filter(
    config: FilterConfig,
    store: SettingsStore,
    logger: Optional[FilterLogger] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> NavigationFilter:
    logger = logger or FilterLogger()
    list_store = ListStore(store, config, logger)
    classifier = ClassifierClient(config, transport=transport, logger=logger)
    engine = DecisionEngine(config, list_store, classifier, logger)
    tracker = TabTracker()
    return NavigationFilter(engine, Enforcer(config, tracker, logger), tracker)


def build_list_editor(navigation_filter: NavigationFilter) -> ListEditor:
    return ListEditor(navigation_filter.list_store, navigation_filter.engine.logger)
