"""Allow-list, deny-list and classifier cascade for a single navigation."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from navfilter.classifier import ClassifierClient
from navfilter.config import FilterConfig
from navfilter.errors import StoreError
from navfilter.list_store import ListStore
from navfilter.logger import FilterLogger
from navfilter.matcher import matches

BLOCKLIST_REASON = "In the required blocklist"


@dataclass(frozen=True)
class NavigationEvent:
    """A navigation about to happen in ``tab_id``; frame 0 is the top-level frame."""

    url: str
    tab_id: str
    frame_id: int = 0
    title: str = ""

    @property
    def is_top_level_http(self) -> bool:
        return self.frame_id == 0 and self.url.startswith("http")


class Verdict(str, Enum):
    ALLOW = "allow"
    BLOCK = "block"


class Stage(str, Enum):
    SKIPPED = "skipped"
    ALLOW_LIST = "allow_list"
    BLOCK_LIST = "block_list"
    CLASSIFIER = "classifier"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    stage: Stage
    reason: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return self.verdict is Verdict.BLOCK

    @classmethod
    def allow(cls, stage: Stage) -> "Decision":
        return cls(Verdict.ALLOW, stage)

    @classmethod
    def block(cls, stage: Stage, reason: str) -> "Decision":
        return cls(Verdict.BLOCK, stage, reason)


def format_ai_reason(label: str, score: float) -> str:
    return f"AI classified as {label} ({score * 100:.1f}%)"


class DecisionEngine:
    """Decides ALLOW or BLOCK for one navigation.

    Precedence is strict: the allow-list (default safe set plus user
    whitelist) wins over everything, the blocklist wins over the classifier,
    and the classifier is consulted only when neither list matched.
    """

    def __init__(
        self,
        config: FilterConfig,
        list_store: ListStore,
        classifier: ClassifierClient,
        logger: Optional[FilterLogger] = None,
    ) -> None:
        self.config = config
        self.list_store = list_store
        self.classifier = classifier
        self.logger = logger or FilterLogger()

    async def decide(self, event: NavigationEvent) -> Decision:
        if not event.is_top_level_http:
            return Decision.allow(Stage.SKIPPED)
        if self.config.is_filter_page(event.url):
            return Decision.allow(Stage.SKIPPED)

        url = event.url
        try:
            blocklist, whitelist = await self.list_store.get_lists()
        except StoreError as exc:
            # Fail open on storage outages.
            self.logger.error("Allowed (store unavailable): %s: %s", url, exc.message)
            return Decision.allow(Stage.STORE_ERROR)

        if matches(url, [*self.config.default_safe, *whitelist]):
            self.logger.info("Allowed (Whitelist/Default Safe): %s", url)
            return Decision.allow(Stage.ALLOW_LIST)

        if matches(url, blocklist):
            self.logger.info("Blocked (Blocklist): %s", url)
            return Decision.block(Stage.BLOCK_LIST, BLOCKLIST_REASON)

        result = await self.classifier.classify(url, event.title)
        self.logger.info(
            "AI Check: %s -> Classified as '%s' with confidence %.1f%%",
            url,
            result.label,
            result.score * 100,
        )
        if self.is_high_risk(result.label, result.score):
            self.logger.info("Blocked (AI): %s", url)
            return Decision.block(Stage.CLASSIFIER, format_ai_reason(result.label, result.score))
        return Decision.allow(Stage.CLASSIFIER)

    def is_high_risk(self, label: str, score: float) -> bool:
        return label in self.config.high_risk_labels and score >= self.config.block_threshold
