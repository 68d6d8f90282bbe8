"""Immutable filter configuration constructed once at startup."""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple
from urllib.parse import urlsplit

from navfilter import __version__
from navfilter.errors import ConfigError

BLOCKLIST_KEY = "blocklist"
WHITELIST_KEY = "whitelist"
MUST_BLOCK_RELEASE_KEY = "must_block_release"

# Sites that are never blocked, even if the classifier disagrees.
DEFAULT_SAFE: Tuple[str, ...] = (
    "canvaslms.com",
    "agasd.org",
    "google.com/classroom",
    "agasd.instructure.com",
    "instructure.com",
    "clever.com",
    "readworks.com",
    "google.com",
    "youtube.com",
    "docs.google.com",
    "mail.google.com",
    "wikipedia.org",
    "khanacademy.org",
    "github.com",
)

# Merged into the persisted blocklist on install and on every new release.
MUST_BLOCK: Tuple[str, ...] = (
    "minecraft.net",
    "roblox.com",
    "discord.com",
    "steamcommunity.com",
    "epicgames.com",
    "fortnite.com",
    "onlyfans.com",
    "pornhub.com",
    "xvideos.com",
    "thepiratebay.org",
    "chatgpt.com",
    "facebook.com",
    "blender.org",
    "tiktok.com",
    "whatsapp.com",
    "irs.gov",
    "bbc.com",
    "icloud.com",
    "dev.to",
    "apple.com",
    "instagram.com",
    "fbi.gov",
    "walmart.com",
    "amazon.com",
    "instacart.com",
    "aldi.us",
    "turbotax.intuit.com",
    "intuit.com",
    "croxy.org",
    "tylerhalltech.com",
    "tylerhalltech.com/noguardian2/",
)

CANDIDATE_LABELS: Tuple[str, ...] = (
    "educational",
    "work",
    "entertainment",
    "adult",
    "unsafe",
    "gaming",
    "music",
    "social media",
    "gambling",
    "proxy",
    "cheating",
)

HIGH_RISK_LABELS: FrozenSet[str] = frozenset(
    {
        "adult",
        "unsafe",
        "gaming",
        "music",
        "social media",
        "gambling",
        "proxy",
        "cheating",
    }
)

DEFAULT_CLASSIFIER_ENDPOINT = "https://api-inference.huggingface.co/models"
DEFAULT_CLASSIFIER_MODEL = "facebook/bart-large-mnli"
DEFAULT_BLOCK_PAGE_URL = "http://127.0.0.1:5000/block"


def url_origin(url: str) -> Optional[Tuple[str, str, int]]:
    """Return ``(scheme, host, port)`` for an http(s) URL, or None."""
    try:
        parts = urlsplit(url.strip())
        scheme = parts.scheme.lower()
        if scheme not in ("http", "https") or not parts.hostname:
            return None
        port = parts.port or (443 if scheme == "https" else 80)
    except ValueError:
        return None
    return scheme, parts.hostname.lower(), port


@dataclass(frozen=True)
class FilterConfig:
    """Lists, label vocabulary and thresholds shared by every component."""

    default_safe: Tuple[str, ...] = DEFAULT_SAFE
    must_block: Tuple[str, ...] = MUST_BLOCK
    candidate_labels: Tuple[str, ...] = CANDIDATE_LABELS
    high_risk_labels: FrozenSet[str] = HIGH_RISK_LABELS
    block_threshold: float = 0.6
    fallback_label: str = "educational"
    classifier_endpoint: str = DEFAULT_CLASSIFIER_ENDPOINT
    classifier_model: str = DEFAULT_CLASSIFIER_MODEL
    api_key: str = field(default="", repr=False)
    classifier_timeout: float = 8.0
    block_page_url: str = DEFAULT_BLOCK_PAGE_URL
    release: str = __version__

    def __post_init__(self) -> None:
        unknown = set(self.high_risk_labels) - set(self.candidate_labels)
        if unknown:
            raise ConfigError(
                f"High-risk labels missing from vocabulary: {sorted(unknown)}",
                {"labels": sorted(unknown)},
            )
        if self.fallback_label not in self.candidate_labels:
            raise ConfigError(f"Fallback label {self.fallback_label!r} is not a candidate label")
        if self.fallback_label in self.high_risk_labels:
            raise ConfigError(f"Fallback label {self.fallback_label!r} must not be high risk")
        if not 0.0 < self.block_threshold <= 1.0:
            raise ConfigError(f"Block threshold must be in (0, 1], got {self.block_threshold}")
        if self.classifier_timeout <= 0:
            raise ConfigError("Classifier timeout must be positive")
        if not self.api_key.isascii() or any(ch in self.api_key for ch in "\r\n"):
            raise ConfigError("Classifier API key must be a single line of ASCII text")

    def is_filter_page(self, url: str) -> bool:
        """True for pages served alongside the block page, which are never filtered."""
        origin = url_origin(url)
        return origin is not None and origin == url_origin(self.block_page_url)

    @property
    def classifier_url(self) -> str:
        return f"{self.classifier_endpoint.rstrip('/')}/{self.classifier_model}"

    @classmethod
    def from_env(cls, **overrides: object) -> "FilterConfig":
        """Build a config from NAVFILTER_* environment variables plus explicit overrides."""
        values = {
            "api_key": os.getenv("NAVFILTER_HF_API_KEY") or os.getenv("HF_API_KEY", ""),
            "classifier_endpoint": os.getenv(
                "NAVFILTER_CLASSIFIER_ENDPOINT", DEFAULT_CLASSIFIER_ENDPOINT
            ),
            "classifier_model": os.getenv("NAVFILTER_CLASSIFIER_MODEL", DEFAULT_CLASSIFIER_MODEL),
            "block_page_url": os.getenv("NAVFILTER_BLOCK_PAGE_URL", DEFAULT_BLOCK_PAGE_URL),
        }
        timeout = os.getenv("NAVFILTER_CLASSIFIER_TIMEOUT")
        if timeout:
            try:
                values["classifier_timeout"] = float(timeout)
            except ValueError as exc:
                raise ConfigError(f"Invalid NAVFILTER_CLASSIFIER_TIMEOUT: {timeout!r}") from exc
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

