"""CLI for running offline cabin dispatch scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from dispatch import Dispatcher, DispatchTiming, Simulation, VirtualClock

logger = logging.getLogger(__name__)


def build_simulation(config: Dict) -> Simulation:
    building_cfg = config.get("building", {})
    num_floors = building_cfg.get("num_floors", 10)
    initial_floor = building_cfg.get("initial_floor", 0)
    timing = DispatchTiming.from_mapping(config.get("timing"))

    dispatcher = Dispatcher(num_floors, initial_floor, clock=VirtualClock(), timing=timing)
    return Simulation(dispatcher, door_dwell_ticks=config.get("door_dwell_ticks", 1))


def _apply_scheduled_events(simulation: Simulation, events: Iterable[Dict], current_tick: int) -> None:
    for event in events:
        if event.get("time", 0) != current_tick:
            continue
        kind = event.get("type")
        if kind == "request":
            accepted = simulation.submit_request(event.get("floor"))
        elif kind == "call":
            accepted = simulation.submit_call(event.get("floor"), event.get("direction"))
        else:
            logger.warning("Skipping unknown event type %r at tick %d", kind, current_tick)
            continue
        if not accepted:
            logger.warning("Event %s was rejected by the dispatcher", event)


async def run_simulation(simulation: Simulation, config: Dict) -> List[Dict]:
    duration = config.get("duration", 100)
    events = config.get("events", [])
    trace: List[Dict] = []
    simulation.on_event(
        "tick",
        lambda payload: trace.append(
            {key: payload[key] for key in ("tick", "time", "current_floor", "direction", "doors_open", "state")}
        ),
    )

    for _ in range(duration):
        _apply_scheduled_events(simulation, events, simulation.current_tick)
        await simulation.step()
    return trace


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write metrics and the cabin trace as JSON",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(name)s %(levelname)s %(message)s")

    config = json.loads(args.config.read_text())
    simulation = build_simulation(config)
    trace = asyncio.run(run_simulation(simulation, config))

    final_metrics = asdict(simulation.metrics_snapshot())
    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration": config.get("duration", 100),
        "final_cabin": simulation.dispatcher.snapshot(),
        "final_metrics": final_metrics,
        "trace": trace,
    }

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Duration: {results['duration']} ticks")
    print("Final metrics:")
    for key, value in final_metrics.items():
        print(f"  {key}: {value}")
    if args.output:
        print(f"Saved results to {args.output}")


if __name__ == "__main__":
    main()
