"""Infrastructure and CDN domains excluded from per-site usage rows."""

from __future__ import annotations

from typing import Iterable

DEFAULT_IGNORE_SUFFIXES: tuple[str, ...] = (
    "supabase.co",
    "googleapis.com",
    "gstatic.com",
    "gvt2.com",
    "googleusercontent.com",
    "fbcdn.net",
    "doubleclick.net",
    "cloudflare.com",
)


class IgnoreList:
    """Matches a domain against a set of ignored suffixes."""

    def __init__(self, suffixes: Iterable[str] = DEFAULT_IGNORE_SUFFIXES) -> None:
        self._suffixes = frozenset(
            suffix.strip().lower().lstrip(".") for suffix in suffixes if suffix and suffix.strip()
        )

    @property
    def suffixes(self) -> frozenset[str]:
        return self._suffixes

    def is_ignored(self, domain: str) -> bool:
        domain = domain.lower()
        return any(
            domain == suffix or domain.endswith("." + suffix) for suffix in self._suffixes
        )

    def __contains__(self, domain: str) -> bool:
        return self.is_ignored(domain)
