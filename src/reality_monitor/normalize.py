"""Helpers shared by the portal adapters to build canonical listings."""
from __future__ import annotations

import math
import re
from typing import Any, Optional

from .schema import Category, Portal


def listing_id(source: Portal, category: Category, native_id: Any) -> str:
    return f"{source.value}:{category.value}:{native_id}"


def parse_area(value: Any) -> Optional[float]:
    """Parse ``288``, ``"288 m²"`` or ``"1,5"`` into a float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^\d.]", "", str(value).replace(",", ".", 1))
    m = re.match(r"\d*\.?\d+", cleaned)
    if not m:
        return None
    return float(m.group(0))


def safe_int(val: Any) -> Optional[int]:
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return int(val)
    cleaned = re.sub(r"[^\d]", "", str(val))
    return int(cleaned) if cleaned else None


def positive_or_none(val: Optional[float]) -> Optional[float]:
    if val is None or val <= 0:
        return None
    return val


def calc_price_per_sqm(price: Optional[int], floor_area: Optional[float]) -> Optional[int]:
    if price is None or floor_area is None or floor_area <= 0:
        return None
    # half-up, not banker's rounding
    return math.floor(price / floor_area + 0.5)
