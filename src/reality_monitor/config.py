from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Optional, List

from .schema import Category, OfferType, Portal

LISTING_HISTORY_KEY = "LISTING_HISTORY"
BEST_DEAL_THRESHOLD = 0.85


class ConfigError(ValueError):
    """Invalid run configuration; raised before any network activity."""


class AppConfig(BaseModel):
    report_path: str = "reports/latest.md"
    output_path: str = "reports/listings.json"
    database_path: str = "data/monitor.db"
    request_delay_seconds: float = 0.5


class RunConfig(BaseModel):
    portals: List[Portal] = Field(default_factory=lambda: [Portal.SREALITY])
    categories: List[Category] = Field(default_factory=lambda: [Category.HOUSE])
    offer_type: OfferType = OfferType.SALE
    regions: List[str] = Field(default_factory=list)
    max_price: Optional[int] = Field(default=None, ge=0)
    min_area: Optional[float] = Field(default=None, ge=0)
    max_items: Optional[int] = Field(default=100, ge=0)
    max_concurrency: int = Field(default=5, ge=1)
    history_store_id: Optional[str] = None
    best_deal_threshold: float = Field(default=BEST_DEAL_THRESHOLD, gt=0)

    @field_validator("portals")
    @classmethod
    def _portals_not_empty(cls, v: List[Portal]) -> List[Portal]:
        if not v:
            raise ValueError('"portals" must contain at least one portal')
        return list(dict.fromkeys(v))

    @field_validator("categories")
    @classmethod
    def _categories_not_empty(cls, v: List[Category]) -> List[Category]:
        if not v:
            raise ValueError('"categories" must contain at least one category')
        return list(dict.fromkeys(v))

    @property
    def offer_types(self) -> List[OfferType]:
        return expand_offer_types(self.offer_type)

    @property
    def history_key(self) -> str:
        return self.history_store_id or LISTING_HISTORY_KEY


def expand_offer_types(offer_type: OfferType) -> List[OfferType]:
    if offer_type is OfferType.BOTH:
        return [OfferType.SALE, OfferType.RENT]
    return [offer_type]


class Config(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    run: RunConfig = Field(default_factory=RunConfig)

    @classmethod
    def from_yaml(cls, path: str | Path = "config.yaml") -> Config:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> Config:
        try:
            return cls(
                app=AppConfig(**(raw.get("app") or {})),
                run=RunConfig(**(raw.get("run") or {})),
            )
        except ValidationError as exc:
            raise ConfigError(f"Input validation error: {exc}") from exc
