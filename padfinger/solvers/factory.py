"""
Strategy Factory Module - Maps solver types to strategy classes.
"""

from enum import Enum
from typing import Dict, List, Optional, Type, Union

from ..exceptions import UnknownSolverTypeError
from ..grid.mapping import GridMapping
from ..utils.config import AnnealingConfig, EngineConfig, GeneticConfig, InstrumentConfig
from .annealing import AnnealingStrategy
from .base import SolverStrategy
from .beam import BeamSearchStrategy
from .genetic import GeneticStrategy
from .greedy import GreedyStrategy


class SolverType(str, Enum):
    GREEDY = "greedy"
    BEAM = "beam"
    GENETIC = "genetic"
    ANNEALING = "annealing"


_STRATEGIES: Dict[SolverType, Type[SolverStrategy]] = {
    SolverType.GREEDY: GreedyStrategy,
    SolverType.BEAM: BeamSearchStrategy,
    SolverType.GENETIC: GeneticStrategy,
    SolverType.ANNEALING: AnnealingStrategy,
}


def parse_solver_type(solver_type: Union[SolverType, str]) -> SolverType:
    """
    Normalise a solver identifier.

    Raises:
        UnknownSolverTypeError: If the identifier names no strategy
    """
    if isinstance(solver_type, SolverType):
        return solver_type
    try:
        return SolverType(str(solver_type).lower())
    except ValueError:
        raise UnknownSolverTypeError(
            solver_type, [t.value for t in SolverType]
        ) from None


def resolve_solver(
    solver_type: Union[SolverType, str],
    instrument: InstrumentConfig,
    grid_mapping: Optional[GridMapping] = None,
    genetic_config: Optional[GeneticConfig] = None,
    annealing_config: Optional[AnnealingConfig] = None
) -> SolverStrategy:
    """
    Create a strategy instance.

    Args:
        solver_type: SolverType or its string value (e.g. "beam")
        instrument: Grid layout
        grid_mapping: Optional custom pad mapping
        genetic_config: Parameters for the genetic strategy
        annealing_config: Parameters for the annealing strategy

    Returns:
        Strategy instance

    Raises:
        UnknownSolverTypeError: If solver_type is not known
    """
    solver_type = parse_solver_type(solver_type)
    strategy_cls = _STRATEGIES[solver_type]

    if solver_type is SolverType.GENETIC:
        return strategy_cls(instrument, grid_mapping, genetic_config=genetic_config)
    if solver_type is SolverType.ANNEALING:
        return strategy_cls(instrument, grid_mapping, annealing_config=annealing_config)
    return strategy_cls(instrument, grid_mapping)


def get_default_solver_type() -> SolverType:
    return SolverType.GREEDY


def get_available_solver_types() -> List[SolverType]:
    """All solver types, default first."""
    return list(SolverType)


def create_biomechanical_solver(
    instrument: Optional[InstrumentConfig] = None,
    grid_mapping: Optional[GridMapping] = None,
    engine_config: Optional[EngineConfig] = None,
    solver_type: Union[SolverType, str, None] = None,
    **solver_configs
):
    """Convenience constructor for the BiomechanicalSolver facade."""
    from ..engine import BiomechanicalSolver

    return BiomechanicalSolver(
        instrument=instrument or InstrumentConfig(),
        grid_mapping=grid_mapping,
        engine_config=engine_config,
        solver_type=solver_type or get_default_solver_type(),
        **solver_configs
    )
