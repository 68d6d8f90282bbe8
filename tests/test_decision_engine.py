import pytest

from navfilter.decision_engine import (
    BLOCKLIST_REASON,
    DecisionEngine,
    NavigationEvent,
    Stage,
    Verdict,
    format_ai_reason,
)
from navfilter.list_store import ListStore
from navfilter.settings_store import MemorySettingsStore

from conftest import FailingStore, StubClassifier


def event(url: str, title: str = "", frame_id: int = 0) -> NavigationEvent:
    return NavigationEvent(url=url, tab_id="tab-1", frame_id=frame_id, title=title)


@pytest.mark.asyncio
async def test_blocklist_blocks_without_calling_classifier(engine, list_store, classifier) -> None:
    await list_store.reconcile_must_block()

    decision = await engine.decide(event("https://roblox.com/play", "Roblox"))

    assert decision.verdict is Verdict.BLOCK
    assert decision.reason == BLOCKLIST_REASON
    assert decision.stage is Stage.BLOCK_LIST
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_default_safe_beats_blocklist(engine, list_store, classifier) -> None:
    await list_store.set("blocklist", ["docs.google.com"])

    decision = await engine.decide(event("https://docs.google.com/doc1"))

    assert decision.verdict is Verdict.ALLOW
    assert decision.stage is Stage.ALLOW_LIST
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_user_whitelist_beats_blocklist_and_classifier(config, list_store, logger) -> None:
    classifier = StubClassifier("adult", 0.99)
    engine = DecisionEngine(config, list_store, classifier, logger)
    await list_store.set("blocklist", ["casino"])
    await list_store.set("whitelist", ["CASINO-history.example"])

    decision = await engine.decide(event("https://casino-history.example/1920s"))

    assert decision.verdict is Verdict.ALLOW
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_classifier_high_risk_label_blocks(config, list_store, logger) -> None:
    classifier = StubClassifier("gaming", 0.82)
    engine = DecisionEngine(config, list_store, classifier, logger)

    decision = await engine.decide(event("https://randomsite.biz", "Play free games"))

    assert decision.verdict is Verdict.BLOCK
    assert decision.stage is Stage.CLASSIFIER
    assert decision.reason == "AI classified as gaming (82.0%)"
    assert classifier.calls == [("https://randomsite.biz", "Play free games")]


@pytest.mark.parametrize(
    "label,score,verdict",
    [
        ("gaming", 0.6, Verdict.BLOCK),
        ("gaming", 0.5999, Verdict.ALLOW),
        ("social media", 1.0, Verdict.BLOCK),
        ("entertainment", 0.99, Verdict.ALLOW),
        ("work", 0.99, Verdict.ALLOW),
        ("educational", 0.0, Verdict.ALLOW),
    ],
)
@pytest.mark.asyncio
async def test_threshold_and_label_rules(config, list_store, logger, label, score, verdict) -> None:
    engine = DecisionEngine(config, list_store, StubClassifier(label, score), logger)
    decision = await engine.decide(event("https://unlisted.example"))
    assert decision.verdict is verdict


@pytest.mark.parametrize(
    "url,frame_id",
    [
        ("https://roblox.com/", 1),
        ("chrome://settings", 0),
        ("ftp://roblox.com/file", 0),
        ("about:blank", 0),
    ],
)
@pytest.mark.asyncio
async def test_subframes_and_non_http_are_skipped(engine, list_store, classifier, url, frame_id) -> None:
    await list_store.set("blocklist", ["roblox.com"])
    decision = await engine.decide(event(url, frame_id=frame_id))
    assert decision.verdict is Verdict.ALLOW
    assert decision.stage is Stage.SKIPPED
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_store_failure_fails_open(config, logger) -> None:
    classifier = StubClassifier("adult", 0.99)
    engine = DecisionEngine(config, ListStore(FailingStore(), config, logger), classifier, logger)

    decision = await engine.decide(event("https://roblox.com/"))

    assert decision.verdict is Verdict.ALLOW
    assert decision.stage is Stage.STORE_ERROR
    assert classifier.calls == []


def test_ai_reason_uses_one_decimal_percentage() -> None:
    assert format_ai_reason("proxy", 0.6) == "AI classified as proxy (60.0%)"
    assert format_ai_reason("adult", 0.98765) == "AI classified as adult (98.8%)"


@pytest.mark.parametrize(
    "url",
    [
        "http://filter.local/block?site=https%3A%2F%2Froblox.com%2Fplay&reason=In+the+required+blocklist",
        "http://FILTER.local:80/options",
    ],
)
@pytest.mark.asyncio
async def test_filter_pages_are_never_evaluated(config, logger, url) -> None:
    classifier = StubClassifier("proxy", 0.99)
    store = ListStore(MemorySettingsStore({"blocklist": ["roblox.com", "filter.local"]}), config, logger)
    engine = DecisionEngine(config, store, classifier, logger)

    decision = await engine.decide(event(url))

    assert decision.verdict is Verdict.ALLOW
    assert decision.stage is Stage.SKIPPED
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_same_host_on_another_port_is_still_filtered(config, logger) -> None:
    store = ListStore(MemorySettingsStore({"blocklist": ["filter.local"]}), config, logger)
    engine = DecisionEngine(config, store, StubClassifier(), logger)

    decision = await engine.decide(event("http://filter.local:8081/games"))

    assert decision.stage is Stage.BLOCK_LIST
