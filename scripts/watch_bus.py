#!/usr/bin/env python3
"""Follow the live position of one bus from the terminal.

Prints every sample, the interpolated marker position once per second,
and the staleness label. Stops on Ctrl-C or after ``--seconds``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pybustrack import BusTrackClient, BusTrackConfig, LatLng, PositionSample, StalenessReport  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("bus", help="bus number to follow")
    parser.add_argument("--seconds", type=float, default=0, help="stop after this many seconds (0 = forever)")
    parser.add_argument("--route", action="store_true", help="print the planned route first")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    config = BusTrackConfig.from_env()
    displayed: list[LatLng] = []

    def _on_sample(sample: PositionSample) -> None:
        print(f"sample lat={sample.lat:.6f} long={sample.long:.6f} ts={sample.source_timestamp}")
        animator.update(sample.position)

    def _on_report(report: StalenessReport) -> None:
        where = f"{displayed[-1].lat:.6f},{displayed[-1].long:.6f}" if displayed else "-"
        reload_hint = "  (try refreshing)" if report.prompt_reload else ""
        print(f"marker={where} updated {report.label} [{report.status}]{reload_hint}")

    async with BusTrackClient(config) as client:
        if args.route:
            path = await client.get_route_path(args.bus)
            print(f"route: {len(path)} point(s)")

        animator = client.animator(displayed.append)
        stream = client.position_stream(on_sample=_on_sample, on_error=lambda msg: print(msg, file=sys.stderr))
        monitor = client.staleness_monitor(stream, _on_report)

        await stream.subscribe(args.bus, config.token)
        monitor.start()
        try:
            if args.seconds > 0:
                await asyncio.sleep(args.seconds)
            else:
                await asyncio.Event().wait()
        finally:
            await monitor.stop()
            await animator.close()
            await stream.unsubscribe()
    return 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
