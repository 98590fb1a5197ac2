"""
Genetic Strategy - Evolves complete assignments.

Each chromosome holds one (hand, finger) gene per event in time order.
Chromosomes are scored by replaying them through the shared evaluator;
infeasible genes are repaired to the cheapest feasible choice and the
repair is written back into the chromosome.

Usage:
    strategy = GeneticStrategy(instrument, genetic_config=GeneticConfig(seed=7))
    result = await strategy.solve(performance, engine_config)
    for entry in result.evolution_log:
        print(entry.generation, entry.best_cost)
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from ..grid.mapping import GridMapping
from ..utils.config import EngineConfig, GeneticConfig, InstrumentConfig
from ..utils.logging_utils import ProgressLogger, get_logger
from .base import SolverStrategy
from .evaluation import ALL_CHOICES, Evaluation
from .greedy import GreedyStrategy
from .types import (
    Choice,
    EngineResult,
    EvolutionLogEntry,
    ManualAssignment,
    Performance,
    index_manual_assignments,
)

logger = get_logger(__name__)


@dataclass
class Individual:
    """A chromosome and its evaluation."""
    chromosome: List[Choice]
    evaluation: Evaluation

    @property
    def cost(self) -> float:
        return self.evaluation.total_cost

    @property
    def fitness(self) -> float:
        return 1.0 / (1.0 + self.cost)


class GeneticStrategy(SolverStrategy):
    """
    Genetic algorithm over complete assignments.

    Algorithm:
        1. Seed the population with the greedy assignment plus random ones
        2. Each generation keeps the elitism best individuals, then fills
           the rest by tournament selection, single-point crossover and
           per-gene mutation
        3. Return the cheapest individual after the last generation

    The greedy seed survives through elitism, so the result never costs
    more than the greedy assignment under the shared evaluator.
    """
    name = "genetic"
    description = "Genetic algorithm seeded with the greedy assignment"
    is_synchronous = False

    def __init__(
        self,
        instrument: InstrumentConfig,
        grid_mapping: Optional[GridMapping] = None,
        genetic_config: Optional[GeneticConfig] = None
    ):
        super().__init__(instrument, grid_mapping)
        self.genetic_config = genetic_config or GeneticConfig()

    async def solve(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        manual_assignments = list(manual_assignments or [])
        params = self.genetic_config
        rng = np.random.default_rng(params.seed)

        events = self.prepare(performance)
        manual = index_manual_assignments(manual_assignments)
        evaluator = self.new_evaluator(config)

        # Genes worth varying: mapped events without a manual override
        mutable = [
            i for i, prepared in enumerate(events)
            if prepared.position is not None and prepared.event_index not in manual
        ]

        def evaluate(chromosome: List[Choice]) -> Individual:
            evaluation = evaluator.evaluate(events, chromosome, manual)
            return Individual(chromosome=list(evaluation.choices), evaluation=evaluation)

        def random_chromosome() -> List[Choice]:
            chromosome: List[Choice] = [None] * len(events)
            for i in mutable:
                chromosome[i] = ALL_CHOICES[rng.integers(len(ALL_CHOICES))]
            return chromosome

        seed = GreedyStrategy(self.instrument, self.grid_mapping).initial_choices(
            performance, config, manual_assignments
        )
        population = [evaluate(seed)]
        population += [evaluate(random_chromosome()) for _ in range(params.population_size - 1)]

        evolution_log = [self._log_entry(0, population)]
        progress = ProgressLogger(__name__, params.generations, log_interval=10, unit="generations")
        progress.start()

        for generation in range(1, params.generations + 1):
            population.sort(key=lambda ind: ind.cost)
            next_population = population[:params.elitism]

            while len(next_population) < params.population_size:
                parent_a = self._tournament(population, rng)
                parent_b = self._tournament(population, rng)
                child = self._crossover(parent_a.chromosome, parent_b.chromosome, rng)
                self._mutate(child, mutable, rng)
                next_population.append(evaluate(child))

            population = next_population
            entry = self._log_entry(generation, population)
            evolution_log.append(entry)
            progress.update(best=entry.best_cost, average=entry.average_cost)

            if generation % params.yield_every == 0:
                await asyncio.sleep(0)

        progress.finish()
        best = min(population, key=lambda ind: ind.cost)
        logger.info(
            f"[Genetic] Best cost {best.cost:.2f} after {params.generations} generations "
            f"(initial best {evolution_log[0].best_cost:.2f})"
        )

        return self.build_result(
            best.evaluation.debug_events, best.evaluation.state, evolution_log=evolution_log
        )

    def _tournament(self, population: List[Individual], rng: np.random.Generator) -> Individual:
        """Fittest of tournament_size randomly drawn individuals."""
        size = min(self.genetic_config.tournament_size, len(population))
        picks = rng.choice(len(population), size=size, replace=False)
        return max((population[i] for i in picks), key=lambda ind: ind.fitness)

    @staticmethod
    def _crossover(
        parent_a: List[Choice],
        parent_b: List[Choice],
        rng: np.random.Generator
    ) -> List[Choice]:
        """Single-point crossover: head of parent_a, tail of parent_b."""
        if len(parent_a) < 2:
            return list(parent_a)
        point = int(rng.integers(1, len(parent_a)))
        return list(parent_a[:point]) + list(parent_b[point:])

    def _mutate(self, chromosome: List[Choice], mutable: List[int], rng: np.random.Generator):
        rate = self.genetic_config.mutation_rate
        for i in mutable:
            if rng.random() < rate:
                chromosome[i] = ALL_CHOICES[rng.integers(len(ALL_CHOICES))]

    @staticmethod
    def _log_entry(generation: int, population: List[Individual]) -> EvolutionLogEntry:
        costs = np.array([ind.cost for ind in population])
        return EvolutionLogEntry(
            generation=generation,
            best_cost=float(costs.min()),
            average_cost=float(costs.mean()),
            worst_cost=float(costs.max())
        )
