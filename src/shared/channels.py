from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

ALL_BRANDS = "All Brands"
COMPANY_TOTAL = "All Brands (Company Total)"
ALL_CHANNELS = "All Channels"
ADMIN_ROLE = "Admin"

COMPANY_TOTAL_SELECTIONS = frozenset({ALL_BRANDS, COMPANY_TOTAL})

CHANNELS: List[str] = [
    "Amazon",
    "TikTok",
    "DTC-Shopify",
    "Retail",
    "CA International",
    "UK International",
    "Wholesale",
    "Omnichannel",
]

# Backend/export names -> dashboard names.
CHANNEL_ALIASES: Dict[str, str] = {
    "shopify": "DTC-Shopify",
    "retailsale": "Retail",
    "retail sale": "Retail",
    "amazon seller central": "Amazon",
    "amazon vendor central": "Amazon",
    "tiktok shop": "TikTok",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_key(value: object) -> str:
    text = "" if value is None else str(value)
    text = text.strip().lower().replace("&", "and")
    return _NON_ALNUM.sub("", text)


_ALIAS_KEYS = {normalize_key(alias): name for alias, name in CHANNEL_ALIASES.items()}


def canonical_channel(value: Optional[str]) -> str:
    display = (value or "").strip()
    return _ALIAS_KEYS.get(normalize_key(display), display)


def is_company_total(brand: Optional[str]) -> bool:
    return not brand or brand in COMPANY_TOTAL_SELECTIONS


def key_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(normalize_key(value) for value in values)


def unique_by_key(values: Iterable[str]) -> List[str]:
    """Drop names that normalize to a key already seen, keeping the first spelling."""
    seen = set()
    unique: List[str] = []
    for value in values:
        value_key = normalize_key(value)
        if value_key in seen:
            continue
        seen.add(value_key)
        unique.append(value)
    return unique
