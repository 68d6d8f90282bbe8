"""Case-insensitive substring matching of URLs against pattern lists."""

from typing import Iterable, Optional


def first_match(url: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the first pattern contained in ``url``, ignoring case.

    Matching is plain containment: no anchoring, wildcards or host
    boundaries, so ``"able.com"`` also matches ``"disable.com"``.
    """
    lower_url = url.lower()
    for pattern in patterns:
        if pattern and pattern.lower() in lower_url:
            return pattern
    return None


def matches(url: str, patterns: Iterable[str]) -> bool:
    return first_match(url, patterns) is not None
