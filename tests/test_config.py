import pytest

from navfilter.config import CANDIDATE_LABELS, HIGH_RISK_LABELS, FilterConfig
from navfilter.errors import ConfigError


def test_high_risk_labels_are_vocabulary_minus_benign() -> None:
    assert len(CANDIDATE_LABELS) == 11
    assert set(CANDIDATE_LABELS) - HIGH_RISK_LABELS == {"educational", "work", "entertainment"}


def test_defaults() -> None:
    config = FilterConfig()
    assert config.block_threshold == 0.6
    assert config.fallback_label == "educational"
    assert "google.com" in config.default_safe
    assert "roblox.com" in config.must_block
    assert config.classifier_url == (
        "https://api-inference.huggingface.co/models/facebook/bart-large-mnli"
    )


def test_config_is_immutable() -> None:
    config = FilterConfig()
    with pytest.raises(AttributeError):
        config.block_threshold = 0.1


def test_api_key_not_in_repr() -> None:
    assert "secret" not in repr(FilterConfig(api_key="secret"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"high_risk_labels": frozenset({"weapons"})},
        {"fallback_label": "gaming"},
        {"fallback_label": "unknown"},
        {"block_threshold": 0.0},
        {"block_threshold": 1.5},
        {"classifier_timeout": 0},
    ],
)
def test_inconsistent_config_is_rejected(overrides) -> None:
    with pytest.raises(ConfigError):
        FilterConfig(**overrides)


def test_from_env_reads_api_key_and_overrides(monkeypatch) -> None:
    monkeypatch.delenv("NAVFILTER_HF_API_KEY", raising=False)
    monkeypatch.delenv("NAVFILTER_CLASSIFIER_MODEL", raising=False)
    monkeypatch.setenv("HF_API_KEY", "hf-123")
    monkeypatch.setenv("NAVFILTER_CLASSIFIER_TIMEOUT", "3.5")
    config = FilterConfig.from_env(block_page_url="http://localhost:9000/block", classifier_model=None)
    assert config.api_key == "hf-123"
    assert config.classifier_timeout == 3.5
    assert config.block_page_url == "http://localhost:9000/block"
    assert config.classifier_model == "facebook/bart-large-mnli"


def test_from_env_prefers_navfilter_key(monkeypatch) -> None:
    monkeypatch.setenv("HF_API_KEY", "hf-123")
    monkeypatch.setenv("NAVFILTER_HF_API_KEY", "nf-456")
    assert FilterConfig.from_env().api_key == "nf-456"


def test_from_env_rejects_bad_timeout(monkeypatch) -> None:
    monkeypatch.setenv("NAVFILTER_CLASSIFIER_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        FilterConfig.from_env()


@pytest.mark.parametrize("api_key", ["kéy", "line\nbreak"])
def test_api_key_must_be_single_line_ascii(api_key) -> None:
    with pytest.raises(ConfigError):
        FilterConfig(api_key=api_key)


def test_is_filter_page_compares_origins() -> None:
    config = FilterConfig(block_page_url="http://127.0.0.1:5000/block")
    assert config.is_filter_page("http://127.0.0.1:5000/options")
    assert config.is_filter_page("HTTP://127.0.0.1:5000/block?site=x")
    assert not config.is_filter_page("http://127.0.0.1:5001/block")
    assert not config.is_filter_page("https://127.0.0.1:5000/block")
    assert not config.is_filter_page("http://127.0.0.1:notaport/")


def test_extension_block_page_never_matches_http_urls() -> None:
    config = FilterConfig(block_page_url="chrome-extension://abc/block.html")
    assert not config.is_filter_page("http://abc/block.html")
