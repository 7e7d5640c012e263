from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Sequence

from .schema import EnrichedListing


def render_md(enriched: Sequence[EnrichedListing]) -> str:
    now = datetime.now().isoformat(timespec="seconds")
    new = [l for l in enriched if l.is_new]
    changed = [l for l in enriched if l.price_changed]
    best = sorted(
        (l for l in enriched if l.is_best_deal),
        key=lambda l: l.price_to_median_ratio or 0,
    )

    lines: list[str] = [
        "# Reality Monitor Report",
        "",
        f"Generated: {now}",
        "",
        f"**Total listings:** {len(enriched)}  ",
        f"**New:** {len(new)}  ",
        f"**Price changes:** {len(changed)}  ",
        f"**Best deals:** {len(best)}",
        "",
    ]

    if best:
        lines.append("## Best Deals")
        lines.append("")
        lines.append("| Listing | Price | Price/m² | vs. median | Layout | Days tracked |")
        lines.append("|---|---:|---:|---:|---|---:|")
        for l in best:
            lines.append(
                f"| [{_title(l)}]({l.url}) | {_fmt_price(l.price)} | "
                f"{_fmt_price(l.price_per_sqm)} | {_fmt_ratio(l.price_to_median_ratio)} | "
                f"{l.layout or 'N/A'} | {l.days_tracked} |"
            )
        lines.append("")

    if changed:
        lines.append("## Price Changes")
        lines.append("")
        lines.append("| Listing | Previous | Current | Source |")
        lines.append("|---|---:|---:|---|")
        for l in changed:
            lines.append(
                f"| [{_title(l)}]({l.url}) | {_fmt_price(l.previous_price)} | "
                f"{_fmt_price(l.price)} | {l.source.value} |"
            )
        lines.append("")

    if new:
        lines.append("## New Listings")
        lines.append("")
        lines.append("| Listing | Price | Area | Source |")
        lines.append("|---|---:|---:|---|")
        for l in new:
            area = f"{l.floor_area:g} m²" if l.floor_area else "N/A"
            lines.append(
                f"| [{_title(l)}]({l.url}) | {_fmt_price(l.price)} | {area} | {l.source.value} |"
            )
        lines.append("")

    return "\n".join(lines)


def _title(listing: EnrichedListing) -> str:
    return (listing.name or listing.locality or listing.id).replace("|", "/")


def _fmt_price(price: int | None) -> str:
    if price is None:
        return "N/A"
    return f"{price:,} CZK".replace(",", " ")


def _fmt_ratio(ratio: float | None) -> str:
    if ratio is None:
        return "N/A"
    return f"{ratio:.2f}×"


def write_report(path: str, content: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")


def write_dataset(path: str, enriched: Sequence[EnrichedListing]) -> None:
    """Enriched listings as a JSON array; every field is present, nulls included."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    rows = [l.model_dump(mode="json") for l in enriched]
    p.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
