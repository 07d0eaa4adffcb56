#!/usr/bin/env python3
"""Run one incremental notification sync and print the cached list.

Configuration comes from ``BUSTRACK_*`` environment variables
(``BUSTRACK_BASE_URL``, ``BUSTRACK_TOKEN``, ``BUSTRACK_STORE_PATH``).
Run it twice with a store path to see the second sync only fetch the
delta.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pybustrack import BusTrackClient, BusTrackConfig  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--store", help="sqlite cache file (overrides BUSTRACK_STORE_PATH)")
    parser.add_argument("--mark-read", metavar="ID", action="append", default=[], help="mark a notification read")
    parser.add_argument("--json", action="store_true", help="print records as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    overrides = {"store_path": args.store} if args.store else {}
    config = BusTrackConfig.from_env(**overrides)

    async with BusTrackClient(config) as client:
        result = await client.sync_notifications()
        for notification_id in args.mark_read:
            await client.mark_notification_read(notification_id)

        if args.json:
            print(json.dumps([n.to_storage() for n in client.notifications], indent=2, sort_keys=True))
        else:
            for n in client.notifications:
                marker = " " if n.read else "*"
                print(f"{marker} {n.time.isoformat()} [{n.type}] {n.title} ({n.sender})")
            print(f"\n{len(result.new_notifications)} new, {client.unread_count} unread, after={result.watermark_ms}")

    if result.error is not None:
        print(f"sync failed: {result.error}", file=sys.stderr)
        return 1
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
