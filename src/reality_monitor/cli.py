from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from .config import Config, ConfigError
from .enrich import enrich, log_enrich_stats
from .orchestrator import Orchestrator
from .report import render_md, write_dataset, write_report
from .schema import Listing
from .storage import Storage, load_history, save_history, summarize_history

log = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def run(config_path: str = "config.yaml") -> None:
    load_dotenv()
    _setup_logging()

    cfg = Config.from_yaml(config_path)
    run_cfg = cfg.run
    log.info(
        "Starting reality monitor: portals=%s categories=%s offer_type=%s "
        "regions=%s max_price=%s min_area=%s max_items=%s",
        [p.value for p in run_cfg.portals],
        [c.value for c in run_cfg.categories],
        run_cfg.offer_type.value,
        run_cfg.regions,
        run_cfg.max_price,
        run_cfg.min_area,
        run_cfg.max_items,
    )

    storage = Storage(cfg.app.database_path)
    try:
        history = load_history(storage, run_cfg.history_key)

        orchestrator = Orchestrator(run_cfg, delay=cfg.app.request_delay_seconds, logger=log)
        listings: list[Listing] = []
        for portal, batch in orchestrator.iter_batches():
            listings.extend(batch)
            log.info("Portal '%s' returned %d listings (running total %d)", portal.value, len(batch), len(listings))

        result = enrich(listings, history, run_cfg.best_deal_threshold)
        log_enrich_stats(result.enriched, log)

        write_dataset(cfg.app.output_path, result.enriched)
        write_report(cfg.app.report_path, render_md(result.enriched))
        save_history(storage, run_cfg.history_key, result.updated_history)
    finally:
        storage.close()

    log.info(
        "Done. Saved %d listings to %s, report written to %s",
        len(result.enriched),
        cfg.app.output_path,
        cfg.app.report_path,
    )


def history(config_path: str = "config.yaml") -> None:
    load_dotenv()
    _setup_logging()

    cfg = Config.from_yaml(config_path)
    storage = Storage(cfg.app.database_path)
    try:
        entries = load_history(storage, cfg.run.history_key)
    finally:
        storage.close()

    print(f"{len(entries)} listings tracked under '{cfg.run.history_key}'")
    for portal, count in sorted(summarize_history(entries).items()):
        print(f"  {portal}: {count}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="reality_monitor",
        description="Aggregate and enrich Czech real-estate listings",
    )
    sub = parser.add_subparsers(dest="cmd")

    run_parser = sub.add_parser("run", help="Run a single scraping cycle")
    run_parser.add_argument("--config", default="config.yaml", help="Config file path")

    history_parser = sub.add_parser("history", help="Show tracked listings per portal")
    history_parser.add_argument("--config", default="config.yaml", help="Config file path")

    args = parser.parse_args()

    try:
        if args.cmd == "run":
            run(config_path=args.config)
        elif args.cmd == "history":
            history(config_path=args.config)
        else:
            parser.print_help()
            sys.exit(1)
    except ConfigError as exc:
        log.error("%s", exc)
        sys.exit(2)


if __name__ == "__main__":
    main()
