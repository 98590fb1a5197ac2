"""
Simulated Annealing Strategy - Refines the greedy assignment by random reassignment.

Two modes:

- Assignment (default): anneal the (hand, finger) choice per event on a
  fixed pad layout
- Layout (optimize_layout=True): anneal the pad layout itself by swapping
  voices or moving one to an empty pad, scoring each layout with a narrow
  beam search; the best layout is returned as best_mapping

Usage:
    strategy = AnnealingStrategy(instrument, annealing_config=AnnealingConfig(seed=3))
    result = await strategy.solve(performance, engine_config)
    final = result.annealing_trace[-1]
    print(final.best_cost, final.term_shares)
"""

import asyncio
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..cost.cost_function import TERM_NAMES
from ..grid.mapping import GridMapping, Voice, cell_key
from ..grid.mutation import random_mutation
from ..utils.config import AnnealingConfig, EngineConfig, InstrumentConfig
from ..utils.logging_utils import ProgressLogger, get_logger
from .base import SolverStrategy
from .beam import BeamSearchStrategy
from .evaluation import ALL_CHOICES, PreparedEvent
from .greedy import GreedyStrategy
from .types import (
    AnnealingIterationSnapshot,
    EngineResult,
    ManualAssignment,
    OptimizationLogEntry,
    Performance,
    index_manual_assignments,
)

logger = get_logger(__name__)


def acceptance_probability(delta: float, temperature: float) -> float:
    """Metropolis criterion: 1 for non-worsening moves, else exp(-delta / T)."""
    if delta <= 0:
        return 1.0
    if temperature <= 0:
        return 0.0
    return math.exp(-delta / temperature)


def term_shares(term_sums: Dict[str, float]) -> Dict[str, float]:
    """Each term's fraction of the summed terms (all zero when the sum is zero)."""
    total = sum(term_sums.values())
    if total <= 0:
        return {name: 0.0 for name in term_sums}
    return {name: value / total for name, value in term_sums.items()}


def result_cost(result: EngineResult, unplayable_penalty: float) -> Tuple[float, Dict[str, float]]:
    """Total cost of a solved performance and its per-term sums."""
    sums = {name: 0.0 for name in TERM_NAMES}
    total = 0.0
    for event in result.debug_events:
        if event.cost_breakdown is None:
            total += unplayable_penalty
            continue
        total += event.cost_breakdown.total
        for name in TERM_NAMES:
            sums[name] += getattr(event.cost_breakdown, name)
    return total, sums


class AnnealingStrategy(SolverStrategy):
    """
    Simulated annealing over complete assignments or pad layouts.

    Algorithm:
        1. Start from the greedy assignment (or the current layout)
        2. Each iteration reassigns one random event to a random
           (hand, finger), repairing infeasible proposals; in layout
           mode it mutates the layout instead
        3. Accept with the Metropolis criterion, then cool geometrically
        4. Return the best assignment (or layout) seen
    """
    name = "annealing"
    description = "Simulated annealing seeded with the greedy assignment"
    is_synchronous = False

    def __init__(
        self,
        instrument: InstrumentConfig,
        grid_mapping: Optional[GridMapping] = None,
        annealing_config: Optional[AnnealingConfig] = None
    ):
        super().__init__(instrument, grid_mapping)
        self.annealing_config = annealing_config or AnnealingConfig()
        self.best_mapping: Optional[GridMapping] = None

    async def solve(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        manual_assignments = list(manual_assignments or [])
        if self.annealing_config.optimize_layout:
            return await self._solve_layout(performance, config, manual_assignments)
        return await self._solve_assignment(performance, config, manual_assignments)

    async def _solve_assignment(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: List[ManualAssignment]
    ) -> EngineResult:
        params = self.annealing_config
        rng = np.random.default_rng(params.seed)

        events = self.prepare(performance)
        manual = index_manual_assignments(manual_assignments)
        evaluator = self.new_evaluator(config)

        mutable = [
            i for i, prepared in enumerate(events)
            if prepared.position is not None and prepared.event_index not in manual
        ]

        seed = GreedyStrategy(self.instrument, self.grid_mapping).initial_choices(
            performance, config, manual_assignments
        )
        current = evaluator.evaluate(events, seed, manual)
        best = current
        initial_cost = current.total_cost

        temperature = params.initial_temperature
        trace: List[AnnealingIterationSnapshot] = []
        optimization_log: List[OptimizationLogEntry] = []

        iterations = params.iterations if mutable else 0
        progress = ProgressLogger(__name__, iterations, log_interval=100, unit="iterations")
        progress.start()

        for iteration in range(iterations):
            index = mutable[int(rng.integers(len(mutable)))]
            proposal = list(current.choices)
            proposal[index] = ALL_CHOICES[int(rng.integers(len(ALL_CHOICES)))]

            candidate = evaluator.evaluate(events, proposal, manual)
            delta = candidate.total_cost - current.total_cost
            probability = acceptance_probability(delta, temperature)
            accepted = delta <= 0 or rng.random() < probability

            if accepted:
                current = candidate
                if current.total_cost < best.total_cost:
                    best = current

            self._record(
                trace, optimization_log, iteration, temperature,
                current.total_cost, best.total_cost, accepted, delta, probability,
                current.term_sums
            )
            progress.update(temperature=temperature, cost=current.total_cost)

            temperature = max(temperature * params.cooling_rate, params.min_temperature)

            if (iteration + 1) % params.yield_every == 0:
                await asyncio.sleep(0)

        progress.finish()
        self._log_summary(initial_cost, best.total_cost, optimization_log, iterations)

        return self.build_result(
            best.debug_events,
            best.state,
            annealing_trace=trace,
            optimization_log=optimization_log
        )

    async def _solve_layout(
        self,
        performance: Performance,
        config: EngineConfig,
        manual_assignments: List[ManualAssignment]
    ) -> EngineResult:
        params = self.annealing_config
        rng = np.random.default_rng(params.seed)
        penalty = config.weights.unplayable_penalty
        scout_config = replace(config, beam_width=params.layout_beam_width)

        def score(mapping: GridMapping) -> Tuple[float, Dict[str, float]]:
            scout = BeamSearchStrategy(self.instrument, mapping)
            return result_cost(
                scout.solve_sync(performance, scout_config, manual_assignments), penalty
            )

        current_mapping = self._initial_layout(self.prepare(performance))
        current_cost, current_sums = score(current_mapping)
        best_mapping, best_cost = current_mapping, current_cost
        initial_cost = current_cost

        temperature = params.initial_temperature
        trace: List[AnnealingIterationSnapshot] = []
        optimization_log: List[OptimizationLogEntry] = []

        iterations = params.iterations if current_mapping.cells else 0
        progress = ProgressLogger(__name__, iterations, log_interval=100, unit="iterations")
        progress.start()

        for iteration in range(iterations):
            candidate_mapping = random_mutation(current_mapping, self.instrument, rng)
            candidate_cost, candidate_sums = score(candidate_mapping)

            delta = candidate_cost - current_cost
            probability = acceptance_probability(delta, temperature)
            accepted = delta <= 0 or rng.random() < probability

            if accepted:
                current_mapping, current_cost, current_sums = (
                    candidate_mapping, candidate_cost, candidate_sums
                )
                if current_cost < best_cost:
                    best_mapping, best_cost = current_mapping, current_cost

            self._record(
                trace, optimization_log, iteration, temperature,
                current_cost, best_cost, accepted, delta, probability, current_sums
            )
            progress.update(temperature=temperature, cost=current_cost)

            temperature = max(temperature * params.cooling_rate, params.min_temperature)

            if (iteration + 1) % params.yield_every == 0:
                await asyncio.sleep(0)

        progress.finish()
        self._log_summary(initial_cost, best_cost, optimization_log, iterations)

        self.best_mapping = best_mapping.copy()
        final = BeamSearchStrategy(self.instrument, best_mapping).solve_sync(
            performance, config, manual_assignments
        )
        return replace(
            final,
            solver_name=self.name,
            annealing_trace=trace,
            optimization_log=optimization_log,
            best_mapping=self.best_mapping
        )

    def _initial_layout(self, events: List[PreparedEvent]) -> GridMapping:
        """The current mapping plus a voice on the pad of every played note it lacks."""
        if self.grid_mapping is not None:
            layout = self.grid_mapping.copy()
        else:
            layout = GridMapping(id="layout", name="Annealed Layout")

        for prepared in events:
            if prepared.position is None:
                continue
            key = cell_key(int(prepared.position.row), int(prepared.position.col))
            if key not in layout.cells:
                layout.cells[key] = Voice(
                    name=str(prepared.note_number),
                    original_midi_note=prepared.note_number
                )
        return layout

    @staticmethod
    def _record(
        trace: List[AnnealingIterationSnapshot],
        optimization_log: List[OptimizationLogEntry],
        iteration: int,
        temperature: float,
        current_cost: float,
        best_cost: float,
        accepted: bool,
        delta: float,
        probability: float,
        term_sums: Dict[str, float]
    ):
        sums = {name: term_sums.get(name, 0.0) for name in TERM_NAMES}
        trace.append(AnnealingIterationSnapshot(
            iteration=iteration,
            temperature=temperature,
            current_cost=current_cost,
            best_cost=best_cost,
            accepted=accepted,
            delta_cost=delta,
            acceptance_probability=probability,
            term_sums=sums,
            term_shares=term_shares(sums)
        ))
        optimization_log.append(OptimizationLogEntry(
            step=iteration,
            temperature=temperature,
            cost=current_cost,
            accepted=accepted
        ))

    def _log_summary(
        self,
        initial_cost: float,
        best_cost: float,
        optimization_log: List[OptimizationLogEntry],
        iterations: int
    ):
        accepted_count = sum(1 for entry in optimization_log if entry.accepted)
        mode = "layout" if self.annealing_config.optimize_layout else "assignment"
        logger.info(
            f"[Annealing] {mode}: cost {initial_cost:.2f} -> {best_cost:.2f} "
            f"({accepted_count}/{iterations} moves accepted)"
        )
