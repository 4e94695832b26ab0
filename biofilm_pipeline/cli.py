"""CLI entrypoint for the batch biofilm report."""
from __future__ import annotations

import argparse
import logging

from biofilm_pipeline.config import ConfigError, default_config, load_config
from biofilm_pipeline.logging_setup import configure_logging
from biofilm_pipeline.report import run_report, write_report

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="biofilm-report")
    parser.add_argument("--config", help="Path to TOML/JSON config.")
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs in JSON format."
    )
    parser.add_argument("--cv", required=True, help="CV reading sheet (.xlsx/.xls/.csv).")
    parser.add_argument("--metadata", required=True, help="Tab-separated sample metadata.")
    parser.add_argument("--requested", help="Requested isolates sheet with box locations.")
    parser.add_argument("--collection", help="Isolate collection sheet keyed by internal id.")
    parser.add_argument("--out", default="report", help="Directory for the CSV tables.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, json_format=args.json_logs)

    config = default_config()
    if args.config:
        try:
            config = load_config(args.config)
        except ConfigError as exc:
            parser.error(str(exc))

    if args.collection and not args.requested:
        parser.error("--collection requires --requested")

    report = run_report(
        args.cv,
        args.metadata,
        config,
        requested_file=args.requested,
        collection_file=args.collection,
    )
    write_report(report, args.out)

    counts = report.samples["category"].value_counts(dropna=False).to_dict()
    LOGGER.info("Category counts: %s", {str(k): v for k, v in counts.items()})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
