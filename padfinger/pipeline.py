"""
Performability Pipeline

Main entry point for scoring a performance from the command line.

The input is a JSON document with an "events" list and, optionally,
"manual_assignments" and a custom "grid_mapping":

    {
        "name": "groove",
        "events": [{"note_number": 36, "start_time": 0.0}, ...],
        "manual_assignments": [{"event_index": 0, "hand": "left", "finger": "index"}],
        "grid_mapping": {"cells": {"0,0": 36}}
    }

Usage:
    python -m padfinger.pipeline --config configs/default.yaml --input perf.json --solver beam
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .engine import BiomechanicalSolver
from .grid.mapping import GridMapping
from .solvers.factory import SolverType
from .solvers.types import EngineResult, ManualAssignment, Performance
from .utils.config import Config, load_config
from .utils.logging_utils import setup_logging, get_logger

logger = get_logger(__name__)


def load_performance_file(path: str) -> Dict[str, Any]:
    """Read a performance JSON document."""
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with open(input_path, 'r') as f:
        return json.load(f)


class PerformabilityPipeline:
    """
    Config-driven wrapper around BiomechanicalSolver.

    Stages:
    1. Build the performance, manual assignments and custom mapping
    2. Run the configured strategy (sync or async as required)
    3. Log a summary of the result
    """

    def __init__(self, config: Config, solver_type: Optional[str] = None):
        """
        Args:
            config: Configuration object
            solver_type: Overrides config.solver when given
        """
        self.config = config
        self.solver = BiomechanicalSolver(
            instrument=config.instrument,
            engine_config=config.engine,
            solver_type=solver_type or config.solver,
            genetic_config=config.genetic,
            annealing_config=config.annealing
        )
        logger.info(f"Pipeline initialized (solver={self.solver.strategy_name})")

    def run(self, document: Dict[str, Any]) -> EngineResult:
        """
        Score one performance document.

        Args:
            document: Parsed performance document (see module docstring)

        Returns:
            EngineResult
        """
        performance = Performance.from_dict(document)
        manual: List[ManualAssignment] = [
            ManualAssignment.from_dict(m) for m in document.get('manual_assignments', [])
        ]
        if 'grid_mapping' in document:
            self.solver.update_grid_mapping(GridMapping.from_dict(document['grid_mapping']))

        logger.info(f"Solving '{performance.name or 'performance'}': {len(performance)} events")

        if self.solver.strategy.is_synchronous:
            return self.solver.solve(performance, manual)
        return asyncio.run(self.solver.solve_async(performance, manual))

    @staticmethod
    def summarize(result: EngineResult):
        """Log the headline numbers of a result."""
        logger.info("Result:")
        logger.info(f"  Score: {result.score:.0f}")
        logger.info(f"  Hard events: {result.hard_count}")
        logger.info(f"  Unplayable events: {result.unplayable_count}")
        logger.info(f"  Average drift: {result.average_drift:.3f}")
        for name, value in result.average_metrics.to_dict().items():
            logger.info(f"  Mean {name}: {value:.3f}")
        usage = ", ".join(f"{key}={count}" for key, count in result.finger_usage_stats.items())
        logger.info(f"  Finger usage: {usage or 'none'}")
        if result.best_mapping is not None:
            logger.info("  Annealed layout:")
            for key, voice in sorted(result.best_mapping.cells.items()):
                logger.info(f"    {key}: {voice.name}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Pad-grid finger assignment and playability scoring"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Configuration file"
    )
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Performance JSON file"
    )
    parser.add_argument(
        "--solver",
        type=str,
        choices=[t.value for t in SolverType],
        default=None,
        help="Strategy (overrides the config file)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    logger.info("Performability Pipeline")
    logger.info(f"Config: {args.config}")

    config = load_config(args.config)
    pipeline = PerformabilityPipeline(config, solver_type=args.solver)
    result = pipeline.run(load_performance_file(args.input))
    pipeline.summarize(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
