from __future__ import annotations

import json
from pathlib import Path

import numpy as np

from diffdrive_sim.map_generator import generate_arena_map
from diffdrive_sim.simulator import Simulator, SimulatorConfig
from diffdrive_sim.world import World
from evo.controller import Individual, RecurrentController
from evo.evaluate import EvaluationTask, evaluate_individual, evaluate_population
from telemetry.logger import TelemetryLogger


def _world() -> World:
    return World.from_map_dict(generate_arena_map(2.0, 2.0, subdivision_size=0.1))


def _population(n: int) -> list[Individual]:
    rng = np.random.default_rng(42)
    return [Individual.random(12, rng) for _ in range(n)]


def test_evaluate_individual_matches_a_manual_run() -> None:
    world = _world()
    individual = _population(1)[0]
    cfg = SimulatorConfig()

    sim = Simulator(cfg)
    sim.init(RecurrentController(individual), world, 1.0, 1.0, duration=1.0, start_theta=0.5)
    expected = sim()

    task = EvaluationTask(individual=individual, world=world, start=(1.0, 1.0, 0.5), duration=1.0, config=cfg)
    assert evaluate_individual(task) == expected
    assert evaluate_individual(task) == expected


def test_serial_population_keeps_input_order() -> None:
    world = _world()
    population = _population(4)
    fitnesses = evaluate_population(population, world, start=(1.0, 1.0, 0.0), duration=0.5, processes=1)
    expected = [
        evaluate_individual(EvaluationTask(individual=ind, world=world, start=(1.0, 1.0, 0.0), duration=0.5))
        for ind in population
    ]
    assert fitnesses == expected


def test_process_pool_matches_serial_evaluation() -> None:
    world = _world()
    population = _population(3)
    serial = evaluate_population(population, world, start=(1.0, 1.0, 0.0), duration=0.2, processes=1)
    parallel = evaluate_population(population, world, start=(1.0, 1.0, 0.0), duration=0.2, processes=2)
    assert parallel == serial


def test_population_summaries_are_logged(tmp_path: Path) -> None:
    log_path = tmp_path / "runs" / "eval.jsonl"
    with TelemetryLogger(str(log_path)) as logger:
        fitnesses = evaluate_population(
            _population(2),
            _world(),
            start=(1.0, 1.0, 0.0),
            duration=0.1,
            processes=1,
            logger=logger,
            generation=7,
        )

    records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert len(records) == 3
    assert [r["fitness"] for r in records[:2]] == fitnesses
    assert all(r["generation"] == 7 for r in records)
    assert records[0]["ticks"] == 20
    assert records[-1]["population_size"] == 2
    assert records[-1]["best_fitness"] == max(fitnesses)
