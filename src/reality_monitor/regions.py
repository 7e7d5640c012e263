"""Region alias tables.

Every adapter keys its region filter values by the short kraj names
(``"Jihomoravský"``). :func:`build_region_lookup` also registers the long
official spellings (``"Jihomoravský kraj"``, ``"Kraj Vysočina"``,
``"Hlavní město Praha"``) so either form resolves to the same value.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

ALL_REGIONS = "all"

EXTRA_ALIASES: Dict[str, List[str]] = {
    "Praha": ["Hlavní město Praha", "Hl. m. Praha"],
    "Vysočina": ["Kraj Vysočina"],
}


def build_region_lookup(short_names: Dict[str, str]) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for name, value in short_names.items():
        lookup[name] = value
        lookup[f"{name} kraj"] = value
        for alias in EXTRA_ALIASES.get(name, []):
            lookup[alias] = value
    return lookup


def normalize_regions(regions: Sequence[str]) -> List[str]:
    """Strip blanks; the ``"all"`` sentinel anywhere means no region filter."""
    cleaned = [r.strip() for r in regions if r and r.strip()]
    if any(r.lower() == ALL_REGIONS for r in cleaned):
        return []
    return cleaned


def find_invalid_regions(regions: Sequence[str], lookup: Dict[str, str]) -> List[str]:
    return [r for r in normalize_regions(regions) if r not in lookup]


def warn_invalid_regions(
    regions: Sequence[str],
    lookup: Dict[str, str],
    log_prefix: str,
    log: logging.Logger | logging.LoggerAdapter,
) -> List[str]:
    invalid = find_invalid_regions(regions, lookup)
    if invalid:
        log.warning("%s Unknown regions ignored: %s", log_prefix, ", ".join(invalid))
    return invalid


def resolve_regions(
    regions: Sequence[str],
    lookup: Dict[str, str],
    log_prefix: str,
    log: logging.Logger | logging.LoggerAdapter,
) -> Optional[List[Optional[str]]]:
    """Map region names to filter values.

    Returns ``[None]`` for "no region filter" and ``None`` when names were
    given but none is known, which means nothing can match.
    """
    names = normalize_regions(regions)
    if not names:
        return [None]
    warn_invalid_regions(names, lookup, log_prefix, log)
    values = list(dict.fromkeys(lookup[r] for r in names if r in lookup))
    if not values:
        log.warning("%s All provided regions are invalid, nothing will be fetched", log_prefix)
        return None
    return values
