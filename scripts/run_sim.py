from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Any, Dict

# Ensure project root is on path when running this script directly
_script_dir = Path(__file__).resolve().parent
_project_root = _script_dir.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import numpy as np
import yaml

from diffdrive_sim.world import World
from diffdrive_sim.simulator import SimulatorConfig
from diffdrive_sim.map_generator import generate_map
from evo.controller import Individual
from evo.evaluate import evaluate_population
from telemetry.logger import TelemetryLogger


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_world(map_cfg: Dict[str, Any], seed: int) -> World:
    path = map_cfg.get("path")
    if path:
        map_path = Path(path)
        if not map_path.is_absolute():
            map_path = _project_root / map_path
        return World.from_map_file(str(map_path))
    data = generate_map(
        kind=map_cfg.get("generator", "arena"),
        width=float(map_cfg["width"]),
        height=float(map_cfg["height"]),
        subdivision_size=float(map_cfg.get("subdivision_size", 0.1)),
        rng=random.Random(seed),
    )
    return World.from_map_dict(data)


def main() -> None:
    parser = argparse.ArgumentParser(description="Evaluate a random population of vehicle networks.")
    parser.add_argument(
        "--config",
        type=str,
        default=str(_project_root / "configs" / "sim.yaml"),
        help="Path to sim YAML config.",
    )
    parser.add_argument("--population", type=int, default=None, help="Override population size.")
    parser.add_argument("--duration", type=float, default=None, help="Override simulated seconds.")
    parser.add_argument("--processes", type=int, default=None, help="Worker processes (1 = serial).")
    parser.add_argument("--no-telemetry", action="store_true", help="Do not write the JSONL log.")
    args = parser.parse_args()

    cfg = load_yaml(args.config)
    sim_cfg = cfg["sim"]
    eval_cfg = cfg.get("evaluation", {})
    seed = int(cfg.get("seed", 0))

    config = SimulatorConfig.from_dict(cfg)
    world = load_world(cfg["map"], seed)
    start = (
        float(sim_cfg["start_x"]),
        float(sim_cfg["start_y"]),
        float(sim_cfg.get("start_theta", 0.0)),
    )
    duration = args.duration if args.duration is not None else float(sim_cfg["duration"])
    population_size = args.population or int(eval_cfg.get("population_size", 16))
    processes = args.processes if args.processes is not None else eval_cfg.get("processes")

    rng = np.random.default_rng(seed)
    population = [Individual.random(config.num_sensors, rng) for _ in range(population_size)]

    logger = None
    if not args.no_telemetry:
        log_path = Path(cfg.get("telemetry", {}).get("path", "runs/evaluation.jsonl"))
        if not log_path.is_absolute():
            log_path = _project_root / log_path
        logger = TelemetryLogger(str(log_path))

    print(
        f"Evaluating {population_size} individuals for {duration:.1f}s "
        f"on a {world.width:.1f}x{world.height:.1f} map with {len(world.obstacles)} obstacles"
    )
    try:
        fitnesses = evaluate_population(
            population,
            world,
            start=start,
            duration=duration,
            config=config,
            processes=processes,
            logger=logger,
        )
    finally:
        if logger is not None:
            logger.close()

    order = np.argsort(fitnesses)[::-1]
    for rank, idx in enumerate(order):
        print(f"  #{rank + 1:<3d} individual {idx:<3d} fitness {fitnesses[idx]:8.1f}")
    print(f"Best fitness: {fitnesses[order[0]]:.1f}  mean: {float(np.mean(fitnesses)):.2f}")


if __name__ == "__main__":
    main()
