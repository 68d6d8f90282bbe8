"""Persisted blocklist/whitelist access on top of a settings store."""

from typing import Any, List, Optional, Tuple

from navfilter.config import (
    BLOCKLIST_KEY,
    MUST_BLOCK_RELEASE_KEY,
    WHITELIST_KEY,
    FilterConfig,
)
from navfilter.logger import FilterLogger
from navfilter.settings_store import SettingsStore


def _as_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def union_preserving_order(existing: List[str], extra: Tuple[str, ...]) -> List[str]:
    """Return ``existing`` followed by the entries of ``extra`` it lacks."""
    merged = list(existing)
    seen = set(existing)
    for item in extra:
        if item not in seen:
            merged.append(item)
            seen.add(item)
    return merged


class ListStore:
    """Reads and writes the two ordered pattern lists."""

    def __init__(
        self,
        store: SettingsStore,
        config: FilterConfig,
        logger: Optional[FilterLogger] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.logger = logger or FilterLogger()

    async def get(self, key: str) -> List[str]:
        data = await self.store.get([key])
        return _as_list(data.get(key))

    async def set(self, key: str, patterns: List[str]) -> None:
        await self.store.set({key: list(patterns)})

    async def get_lists(self) -> Tuple[List[str], List[str]]:
        """Return ``(blocklist, whitelist)`` from a single store read."""
        data = await self.store.get([BLOCKLIST_KEY, WHITELIST_KEY])
        return _as_list(data.get(BLOCKLIST_KEY)), _as_list(data.get(WHITELIST_KEY))

    async def needs_reconcile(self) -> bool:
        data = await self.store.get([MUST_BLOCK_RELEASE_KEY])
        return data.get(MUST_BLOCK_RELEASE_KEY) != self.config.release

    async def reconcile_must_block(self) -> List[str]:
        """Union the must-block set into the stored blocklist.

        Safe to call any number of times; existing entries keep their order
        and nothing is ever removed.
        """
        blocklist = await self.get(BLOCKLIST_KEY)
        merged = union_preserving_order(blocklist, self.config.must_block)
        await self.store.set(
            {BLOCKLIST_KEY: merged, MUST_BLOCK_RELEASE_KEY: self.config.release}
        )
        self.logger.info(
            "Blocklist reconciled: %d entries (%d added)",
            len(merged),
            len(merged) - len(blocklist),
        )
        return merged

    async def initialize(self) -> None:
        """Run the must-block merge once per install or release."""
        if await self.needs_reconcile():
            await self.reconcile_must_block()
