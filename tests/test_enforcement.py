from urllib.parse import parse_qs, urlsplit

from navfilter.decision_engine import Decision, NavigationEvent, Stage
from navfilter.enforcement import Enforcer, TabTracker, build_block_url

from conftest import RecordingSink


def test_block_url_encodes_site_and_reason() -> None:
    url = build_block_url(
        "http://filter.local/block", "https://a.example/?q=1&x=2", "AI classified as gaming (82.0%)"
    )
    parts = urlsplit(url)
    assert parts.path == "/block"
    assert parse_qs(parts.query) == {
        "site": ["https://a.example/?q=1&x=2"],
        "reason": ["AI classified as gaming (82.0%)"],
    }


def test_block_url_keeps_existing_query() -> None:
    url = build_block_url("http://filter.local/block?lang=en", "https://a.example", "r")
    assert parse_qs(urlsplit(url).query) == {"lang": ["en"], "site": ["https://a.example"], "reason": ["r"]}


def test_tracker_only_latest_token_is_current() -> None:
    tracker = TabTracker()
    first = tracker.begin("tab")
    second = tracker.begin("tab")
    assert not tracker.is_current("tab", first)
    assert tracker.is_current("tab", second)
    tracker.finish("tab", first)
    assert tracker.is_current("tab", second)
    tracker.finish("tab", second)
    assert not tracker.is_current("tab", second)


def test_enforcer_redirects_current_block(config, logger) -> None:
    tracker = TabTracker()
    enforcer = Enforcer(config, tracker, logger)
    sink = RecordingSink()
    nav = NavigationEvent("https://roblox.com/", "tab-7")
    token = tracker.begin("tab-7")

    applied = enforcer.enforce(nav, Decision.block(Stage.BLOCK_LIST, "In the required blocklist"), token, sink)

    assert applied is True
    assert sink.redirects == [
        ("tab-7", build_block_url(config.block_page_url, nav.url, "In the required blocklist"))
    ]


def test_enforcer_ignores_allow_and_stale_decisions(config, logger) -> None:
    tracker = TabTracker()
    enforcer = Enforcer(config, tracker, logger)
    sink = RecordingSink()
    nav = NavigationEvent("https://roblox.com/", "tab-7")
    stale = tracker.begin("tab-7")
    current = tracker.begin("tab-7")

    assert enforcer.enforce(nav, Decision.allow(Stage.ALLOW_LIST), current, sink) is False
    assert enforcer.enforce(nav, Decision.block(Stage.BLOCK_LIST, "x"), stale, sink) is False
    assert sink.redirects == []
