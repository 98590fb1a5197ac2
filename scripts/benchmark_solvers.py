#!/usr/bin/env python
"""
Solver Benchmark Script

Generates a seeded synthetic drum pattern and compares every strategy:
1. Build a random groove (kick, snare, hats, fills) on the 64-pad layout
2. Solve it with greedy, beam, genetic and annealing
3. Report score, hard/unplayable counts, mean cost and runtime

Usage:
    python scripts/benchmark_solvers.py --config configs/default.yaml --bars 8 --seed 0
"""

import argparse
import asyncio
import time
from pathlib import Path
import numpy as np
from tqdm import tqdm
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from padfinger.engine import BiomechanicalSolver
from padfinger.solvers.factory import get_available_solver_types
from padfinger.solvers.types import NoteEvent, Performance
from padfinger.utils.config import Config, load_config
from padfinger.utils.logging_utils import setup_logging, get_logger

logger = get_logger(__name__)

KICK = 36
SNARE = 38
CLOSED_HAT = 42
OPEN_HAT = 46
FILL_NOTES = [41, 43, 45, 47, 48, 50]


def generate_pattern(bars: int, bpm: float, seed: int) -> Performance:
    """Seeded 16th-note groove with occasional fills."""
    rng = np.random.default_rng(seed)
    step = 60.0 / bpm / 4
    events = []

    for bar in range(bars):
        fill_bar = bar % 4 == 3
        for sixteenth in range(16):
            t = (bar * 16 + sixteenth) * step
            if sixteenth % 4 == 0 and (sixteenth in (0, 8) or rng.random() < 0.3):
                events.append(NoteEvent(note_number=KICK, start_time=t))
            if sixteenth in (4, 12):
                events.append(NoteEvent(note_number=SNARE, start_time=t))
            if fill_bar and sixteenth >= 12:
                note = int(rng.choice(FILL_NOTES))
                events.append(NoteEvent(note_number=note, start_time=t))
            elif sixteenth % 2 == 0:
                hat = OPEN_HAT if rng.random() < 0.1 else CLOSED_HAT
                events.append(NoteEvent(note_number=hat, start_time=t))

    return Performance(events=events, tempo=bpm, name=f"synthetic-{seed}")


def run_solver(solver: BiomechanicalSolver, performance: Performance) -> dict:
    """Solve once and collect the headline numbers."""
    start = time.perf_counter()
    if solver.strategy.is_synchronous:
        result = solver.solve(performance)
    else:
        result = asyncio.run(solver.solve_async(performance))
    elapsed = time.perf_counter() - start

    costs = [e.cost for e in result.debug_events if e.is_playable]
    return {
        'solver': solver.strategy_name,
        'score': result.score,
        'hard': result.hard_count,
        'unplayable': result.unplayable_count,
        'mean_cost': float(np.mean(costs)) if costs else 0.0,
        'seconds': elapsed
    }


def main():
    parser = argparse.ArgumentParser(description="Compare assignment strategies")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration file (defaults when omitted)"
    )
    parser.add_argument(
        "--bars",
        type=int,
        default=4,
        help="Number of bars to generate"
    )
    parser.add_argument(
        "--bpm",
        type=float,
        default=110.0,
        help="Tempo of the generated pattern"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Pattern seed"
    )

    args = parser.parse_args()

    setup_logging(level="WARNING", use_tqdm=True)
    config = load_config(args.config) if args.config else Config()
    performance = generate_pattern(args.bars, args.bpm, args.seed)
    logger.warning(f"Benchmarking {len(performance)} events")

    rows = []
    for solver_type in tqdm(get_available_solver_types(), desc="Solvers"):
        solver = BiomechanicalSolver(
            instrument=config.instrument,
            engine_config=config.engine,
            solver_type=solver_type,
            genetic_config=config.genetic,
            annealing_config=config.annealing
        )
        rows.append(run_solver(solver, performance))

    print(f"\n{'solver':<10} {'score':>6} {'hard':>5} {'unpl':>5} {'mean':>8} {'sec':>7}")
    for row in rows:
        print(
            f"{row['solver']:<10} {row['score']:>6.0f} {row['hard']:>5} "
            f"{row['unplayable']:>5} {row['mean_cost']:>8.3f} {row['seconds']:>7.2f}"
        )


if __name__ == "__main__":
    main()
