from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import time

from diffdrive_sim.simulator import Simulator, SimulatorConfig, RunSummary
from diffdrive_sim.world import World
from evo.controller import Individual, RecurrentController
from telemetry.logger import TelemetryLogger


@dataclass
class EvaluationTask:
    """Everything one worker needs to score one individual."""

    individual: Individual
    world: World
    start: Tuple[float, float, float]
    duration: float
    config: SimulatorConfig = field(default_factory=SimulatorConfig)
    index: int = 0


def run_task(task: EvaluationTask) -> RunSummary:
    """Simulate one individual on a private simulator and coverage grid."""
    sim = Simulator(task.config, sim_id=task.index)
    x, y, theta = task.start
    sim.init(
        controller=RecurrentController(task.individual),
        world=task.world,
        start_x=x,
        start_y=y,
        duration=task.duration,
        start_theta=theta,
    )
    sim.run()
    return sim.summary()


def evaluate_individual(task: EvaluationTask) -> float:
    """Fitness of one individual."""
    return run_task(task).fitness.total()


def evaluate_population(
    individuals: Sequence[Individual],
    world: World,
    start: Tuple[float, float, float],
    duration: float,
    config: Optional[SimulatorConfig] = None,
    processes: Optional[int] = None,
    logger: Optional[TelemetryLogger] = None,
    generation: int = 0,
) -> List[float]:
    """Score a whole population, one independent run per individual.

    ``processes == 1`` evaluates serially in this process; any other value
    (``None`` = CPU count) uses a process pool. Fitness values are returned in
    the order of ``individuals``.
    """
    config = config or SimulatorConfig()
    tasks = [
        EvaluationTask(
            individual=ind,
            world=world,
            start=start,
            duration=duration,
            config=config,
            index=i,
        )
        for i, ind in enumerate(individuals)
    ]

    t0 = time.time()
    if processes == 1:
        summaries = [run_task(t) for t in tasks]
    else:
        with ProcessPoolExecutor(max_workers=processes) as pool:
            summaries = list(pool.map(run_task, tasks))
    wall_time = time.time() - t0

    if logger is not None:
        for summary in summaries:
            record: Dict[str, Any] = {"generation": generation, "duration": duration}
            record.update(summary.as_dict())
            logger.log_step(record)
        logger.log_step(
            {
                "generation": generation,
                "population_size": len(summaries),
                "wall_time": wall_time,
                "best_fitness": max((s.fitness.total() for s in summaries), default=0.0),
            }
        )

    return [s.fitness.total() for s in summaries]
