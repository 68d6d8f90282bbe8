"""CRUD over the persisted lists for the options page and the block page."""

from typing import Any, Dict, List, Optional

from navfilter.config import BLOCKLIST_KEY, WHITELIST_KEY
from navfilter.errors import ListIndexError, NavFilterError, StoreError
from navfilter.list_store import ListStore
from navfilter.logger import FilterLogger

EDITABLE_KEYS = (BLOCKLIST_KEY, WHITELIST_KEY)


class ListEditor:
    """Add and remove user patterns.

    Each edit is a read-modify-write against the settings store; concurrent
    editors resolve as last-writer-wins. Store failures propagate as
    ``StoreError`` so the UI can report them.
    """

    def __init__(self, list_store: ListStore, logger: Optional[FilterLogger] = None) -> None:
        self.list_store = list_store
        self.logger = logger or FilterLogger()

    @staticmethod
    def check_key(key: str) -> str:
        if key not in EDITABLE_KEYS:
            raise NavFilterError(f"Unknown list: {key}", {"key": key})
        return key

    async def lists(self) -> Dict[str, List[str]]:
        blocklist, whitelist = await self.list_store.get_lists()
        return {BLOCKLIST_KEY: blocklist, WHITELIST_KEY: whitelist}

    async def add(self, key: str, site: str) -> List[str]:
        """Append ``site`` to ``key`` unless it is already there."""
        self.check_key(key)
        site = (site or "").strip()
        if not site:
            raise NavFilterError("Site must not be empty", {"key": key})
        patterns = await self.list_store.get(key)
        if site in patterns:
            return patterns
        patterns.append(site)
        await self.list_store.set(key, patterns)
        self.logger.info("Added %s to %s", site, key)
        return patterns

    async def remove(self, key: str, index: int) -> List[str]:
        self.check_key(key)
        patterns = await self.list_store.get(key)
        if not 0 <= index < len(patterns):
            raise ListIndexError(key, index)
        removed = patterns.pop(index)
        await self.list_store.set(key, patterns)
        self.logger.info("Removed %s from %s", removed, key)
        return patterns

    async def request_whitelist(self, site: str) -> Dict[str, Any]:
        """Handle the block page's unblock action; the tab is not re-navigated."""
        await self.add(WHITELIST_KEY, site)
        return {"success": True}

    async def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Inbound message interface. Returns None for message types it does not handle."""
        if not isinstance(message, dict) or message.get("type") != "whitelist":
            return None
        try:
            return await self.request_whitelist(str(message.get("site") or ""))
        except StoreError as exc:
            self.logger.error("Whitelist request failed: %s", exc.message)
            return {"success": False, "error": exc.message}
        except NavFilterError as exc:
            return {"success": False, "error": exc.message}
