"""Command that runs the outdoor maps builder node until interrupted."""

from __future__ import annotations

import argparse
import json
import logging
import time
from typing import Any, Sequence

from outdoornav.node import LifecycleError, LifecycleState, OutdoorMapsBuilderNode

logger = logging.getLogger(__name__)

DEFAULT_RATE = 100.0


def _parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="outdoor-maps-builder",
        description="Build outdoor maps from sensor point clouds.",
    )
    parser.add_argument("--sensor-topic", help="topic the point clouds arrive on")
    parser.add_argument(
        "--map-types", nargs="*", metavar="TYPE", help="map builders to run: pcl, gridmap"
    )
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="set a node parameter; the value is read as JSON when it parses",
    )
    parser.add_argument("--rate", type=float, default=DEFAULT_RATE, help="loop rate in Hz")
    parser.add_argument(
        "--iterations", type=int, help="stop after this many loop turns instead of running on"
    )
    return parser


def _spin(node: OutdoorMapsBuilderNode, rate: float, iterations: int | None) -> None:
    period = 1.0 / rate
    next_tick = time.monotonic()
    count = 0
    while iterations is None or count < iterations:
        if node.state is LifecycleState.ACTIVE:
            for perception in list(node.perceptions):
                if perception.new_data:
                    node.cycle()
        count += 1
        next_tick += period
        delay = next_tick - time.monotonic()
        if delay > 0:
            time.sleep(delay)
        else:
            next_tick = time.monotonic()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.rate > 0:
        parser.error("--rate must be positive")
    if args.iterations is not None and args.iterations < 0:
        parser.error("--iterations must not be negative")

    overrides: dict[str, Any] = {}
    for item in args.param:
        name, sep, value = item.partition("=")
        if not sep or not name:
            parser.error(f"--param expects NAME=VALUE, got {item!r}")
        overrides[name] = _parse_value(value)
    if args.sensor_topic is not None:
        overrides["sensor_topic"] = args.sensor_topic
    if args.map_types is not None:
        overrides["map_types"] = list(args.map_types)

    logging.basicConfig(level=logging.INFO)
    node = OutdoorMapsBuilderNode(overrides)
    try:
        try:
            node.configure()
        except LifecycleError as exc:
            logger.error("Failed to configure node: %s", exc)
            return 1
        try:
            node.activate()
        except LifecycleError as exc:
            logger.error("Failed to activate node: %s", exc)
            return 1
        try:
            _spin(node, args.rate, args.iterations)
        except KeyboardInterrupt:
            pass
        return 0
    finally:
        node.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())