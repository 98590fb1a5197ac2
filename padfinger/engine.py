"""
Biomechanical Solver

Facade that owns the instrument, custom mapping and engine configuration
and delegates solving to the selected strategy.

Usage:
    from padfinger.engine import BiomechanicalSolver
    from padfinger.solvers import SolverType

    solver = BiomechanicalSolver(instrument, solver_type=SolverType.BEAM)
    result = solver.solve(performance)

    solver.set_strategy(SolverType.GENETIC)
    result = asyncio.run(solver.solve_async(performance))
"""

from typing import Iterable, Optional, Union

from .exceptions import UnsupportedSolverModeError
from .grid.mapping import GridMapping
from .solvers.base import SolverStrategy
from .solvers.factory import SolverType, parse_solver_type, resolve_solver
from .solvers.types import EngineResult, ManualAssignment, Performance
from .utils.config import AnnealingConfig, EngineConfig, GeneticConfig, InstrumentConfig
from .utils.logging_utils import get_logger

logger = get_logger(__name__)


class BiomechanicalSolver:
    """
    Entry point for finger assignment.

    Args:
        instrument: Grid layout
        grid_mapping: Optional custom pad mapping
        engine_config: Engine configuration (defaults when omitted)
        solver_type: Strategy to use
        genetic_config: Parameters for the genetic strategy
        annealing_config: Parameters for the annealing strategy
    """

    def __init__(
        self,
        instrument: InstrumentConfig,
        grid_mapping: Optional[GridMapping] = None,
        engine_config: Optional[EngineConfig] = None,
        solver_type: Union[SolverType, str] = SolverType.GREEDY,
        genetic_config: Optional[GeneticConfig] = None,
        annealing_config: Optional[AnnealingConfig] = None
    ):
        self.instrument = instrument
        self.grid_mapping = grid_mapping
        self.engine_config = engine_config or EngineConfig()
        self.genetic_config = genetic_config
        self.annealing_config = annealing_config
        self._solver_type = parse_solver_type(solver_type)
        self._strategy = self._create_strategy()

    def _create_strategy(self) -> SolverStrategy:
        return resolve_solver(
            self._solver_type,
            self.instrument,
            self.grid_mapping,
            genetic_config=self.genetic_config,
            annealing_config=self.annealing_config
        )

    @property
    def solver_type(self) -> SolverType:
        return self._solver_type

    @property
    def strategy_name(self) -> str:
        return self._strategy.name

    @property
    def strategy(self) -> SolverStrategy:
        return self._strategy

    def set_strategy(self, solver_type: Union[SolverType, str]):
        """Switch strategy; raises UnknownSolverTypeError for unknown types."""
        self._solver_type = parse_solver_type(solver_type)
        self._strategy = self._create_strategy()
        logger.debug(f"Strategy set to {self._strategy.name}")

    def update_grid_mapping(self, grid_mapping: Optional[GridMapping]):
        self.grid_mapping = grid_mapping
        self._strategy.update_grid_mapping(grid_mapping)

    def update_engine_config(self, engine_config: EngineConfig):
        self.engine_config = engine_config

    def solve(
        self,
        performance: Performance,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        """
        Solve synchronously.

        Raises:
            UnsupportedSolverModeError: If the strategy is async-only
        """
        if not self._strategy.is_synchronous:
            raise UnsupportedSolverModeError(self._strategy.name)
        return self._strategy.solve_sync(performance, self.engine_config, manual_assignments)

    async def solve_async(
        self,
        performance: Performance,
        manual_assignments: Optional[Iterable[ManualAssignment]] = None
    ) -> EngineResult:
        """Solve with any strategy."""
        return await self._strategy.solve(performance, self.engine_config, manual_assignments)
