"""Command line review of the persisted alert log.

Usage:
    camwatch-alerts list --sort hour
    camwatch-alerts show CAM0-9-15-2
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from alerts.store import AlertRecord, AlertStore, SortField, format_hour
from configs.settings import load_config
from exceptions import ConfigError
from log_config.logger import configure_file_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review stored surveillance alerts.")
    parser.add_argument("--config", type=Path, default=None, help="YAML config (default: bundled default.yaml)")
    parser.add_argument("--file", type=Path, default=None, help="Alert log to read (overrides config)")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List alerts")
    list_parser.add_argument(
        "--sort",
        choices=[field.value for field in SortField],
        default=None,
        help="Sort ascending by this field (default: log order)",
    )

    show_parser = sub.add_parser("show", help="Show a single alert")
    show_parser.add_argument("id")
    return parser.parse_args(argv)


def format_record(record: AlertRecord) -> str:
    return (
        f"{record.id:<20} cam={record.camera_index:<3} "
        f"{record.date.isoformat()} {format_hour(record.time):<12} {record.image_path}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_file_logging(config.loop.log_dir)
    alerts_file = args.file if args.file is not None else config.storage.alerts_path
    logger.debug(f"Reading alerts from {alerts_file}")
    store = AlertStore(alerts_file)
    store.load()

    if args.command == "show":
        record = store.get(args.id)
        if record is None:
            print(f"No alert with id {args.id}", file=sys.stderr)
            return 1
        print(format_record(record))
        return 0

    records = store.sorted_by(args.sort) if args.sort else store.records()
    for record in records:
        print(format_record(record))
    print(f"{len(records)} alert(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
