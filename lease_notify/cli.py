"""
Manual trigger for one expiry dispatch run.

Usage:
    lease-dispatch [--config settings.yaml] [--horizon-days 7]
                   [--database-url URL] [--log-level INFO]

Prints the run counters as JSON on stdout.  Exit status is 0 on a
completed run (even with failed obligations) and 1 when the run aborted
because the store was unreachable; the partial counters are still printed.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from lease_config import get_active_config
from lease_kernel.exceptions import DispatchAbortedError
from lease_kernel.logging_config import configure_logging
from lease_notify.runner import run_expiry_dispatch


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lease-dispatch",
        description="Send expiry reminders for contracts and annuities due after the horizon.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (default: packaged defaults)",
    )
    parser.add_argument(
        "--horizon-days",
        type=int,
        default=None,
        help="Override notification.horizon_days",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override database.url",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level)

    config = get_active_config(args.config)
    if args.horizon_days is not None:
        config = dataclasses.replace(
            config,
            notification=dataclasses.replace(
                config.notification, horizon_days=args.horizon_days,
            ),
        )
    if args.database_url:
        config = dataclasses.replace(
            config,
            database=dataclasses.replace(config.database, url=args.database_url),
        )

    try:
        result = run_expiry_dispatch(config)
    except DispatchAbortedError as exc:
        print(json.dumps({"aborted": True, "reason": exc.reason, **exc.stats}))
        return 1

    print(json.dumps({"target_date": result.target_date.isoformat(), **result.stats}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
