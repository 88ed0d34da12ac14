"""Utilities to reduce hostnames and URLs to registrable domains."""

from __future__ import annotations

import re
from typing import Optional

UNKNOWN_DOMAIN = "Unknown"

_SCHEME_PREFIXES: tuple[str, ...] = ("http://", "https://")

# Country-code labels that sit under a second-level label, e.g. example.co.uk.
SHORT_COUNTRY_LABELS: frozenset[str] = frozenset({"in", "uk", "us", "au", "nz", "za"})

_PATH_OR_QUERY_PATTERN = re.compile(r"[/?]")


def normalize_domain(raw: Optional[str]) -> str:
    """Return the lower-case registrable domain for a hostname or URL.

    ``"http://www.Google.co.in/abc?x=1"`` becomes ``"google.co.in"`` and
    ``"sub.example.com"`` becomes ``"example.com"``. Empty input yields
    ``"Unknown"``.
    """
    if not raw:
        return UNKNOWN_DOMAIN
    host = raw.strip().lower()
    for prefix in _SCHEME_PREFIXES:
        if host.startswith(prefix):
            host = host[len(prefix) :]
            break
    if host.startswith("www."):
        host = host[4:]
    host = _PATH_OR_QUERY_PATTERN.split(host, maxsplit=1)[0]
    if not host:
        return UNKNOWN_DOMAIN

    labels = host.split(".")
    if len(labels) <= 2:
        return host
    if _keeps_three_labels(labels):
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _keeps_three_labels(labels: list[str]) -> bool:
    return len(labels[-2]) <= 3 or labels[-1] in SHORT_COUNTRY_LABELS
