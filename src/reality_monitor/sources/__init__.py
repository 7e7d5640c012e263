from __future__ import annotations

from typing import Type

from ..schema import Portal
from .base import PortalAdapter
from .bezrealitky import BezrealitkyAdapter
from .sreality import SrealityAdapter

SOURCE_REGISTRY: dict[Portal, Type[PortalAdapter]] = {
    Portal.SREALITY: SrealityAdapter,
    Portal.BEZREALITKY: BezrealitkyAdapter,
}


def get_adapter(portal: Portal | str) -> Type[PortalAdapter]:
    try:
        return SOURCE_REGISTRY[Portal(portal)]
    except ValueError:
        raise ValueError(
            f"Unknown portal '{portal}'. Available: {', '.join(p.value for p in SOURCE_REGISTRY)}"
        ) from None
