"""Redirect blocked navigations to the interstitial block page."""

import itertools
import threading
from typing import Dict, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from navfilter.config import FilterConfig
from navfilter.decision_engine import Decision, NavigationEvent
from navfilter.logger import FilterLogger


def build_block_url(block_page_url: str, site: str, reason: str) -> str:
    """Append URL-encoded ``site`` and ``reason`` to the block page URL."""
    parts = urlsplit(block_page_url)
    params = urlencode({"site": site, "reason": reason})
    query = f"{parts.query}&{params}" if parts.query else params
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class RedirectSink:
    """Receives ``(tab_id, new_url)`` when a tab must be sent elsewhere."""

    def redirect(self, tab_id: str, new_url: str) -> None:
        raise NotImplementedError


class TabTracker:
    """Tracks the most recent navigation per tab.

    A decision that finishes after its tab has started another navigation is
    stale and must not be applied.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._current: Dict[str, int] = {}

    def begin(self, tab_id: str) -> int:
        with self._lock:
            token = next(self._counter)
            self._current[tab_id] = token
            return token

    def is_current(self, tab_id: str, token: int) -> bool:
        with self._lock:
            return self._current.get(tab_id) == token

    def finish(self, tab_id: str, token: int) -> None:
        with self._lock:
            if self._current.get(tab_id) == token:
                del self._current[tab_id]


class Enforcer:
    """Applies block decisions through a redirect sink."""

    def __init__(
        self,
        config: FilterConfig,
        tracker: TabTracker,
        logger: Optional[FilterLogger] = None,
    ) -> None:
        self.config = config
        self.tracker = tracker
        self.logger = logger or FilterLogger()

    def block_url_for(self, event: NavigationEvent, decision: Decision) -> str:
        return build_block_url(self.config.block_page_url, event.url, decision.reason or "")

    def enforce(
        self,
        event: NavigationEvent,
        decision: Decision,
        token: int,
        sink: RedirectSink,
    ) -> bool:
        """Redirect the tab if ``decision`` blocks and is still current.

        Returns True when a redirect was issued.
        """
        if not decision.blocked:
            return False
        if not self.tracker.is_current(event.tab_id, token):
            self.logger.debug(
                "Discarded stale block for tab %s: %s", event.tab_id, event.url
            )
            return False
        sink.redirect(event.tab_id, self.block_url_for(event, decision))
        return True
