"""Assignment strategies sharing one solve contract."""

from .types import (
    UNPLAYABLE,
    Difficulty,
    NoteEvent,
    Performance,
    ManualAssignment,
    EngineDebugEvent,
    EngineResult,
    EvolutionLogEntry,
    OptimizationLogEntry,
    AnnealingIterationSnapshot,
    difficulty_for_cost,
    compute_score,
)
from .base import SolverStrategy
from .evaluation import AssignmentEvaluator, prepare_events
from .greedy import GreedyStrategy
from .beam import BeamSearchStrategy
from .genetic import GeneticStrategy
from .annealing import AnnealingStrategy
from .factory import (
    SolverType,
    resolve_solver,
    get_default_solver_type,
    get_available_solver_types,
    create_biomechanical_solver,
)

__all__ = [
    "UNPLAYABLE",
    "Difficulty",
    "NoteEvent",
    "Performance",
    "ManualAssignment",
    "EngineDebugEvent",
    "EngineResult",
    "EvolutionLogEntry",
    "OptimizationLogEntry",
    "AnnealingIterationSnapshot",
    "difficulty_for_cost",
    "compute_score",
    "SolverStrategy",
    "AssignmentEvaluator",
    "prepare_events",
    "GreedyStrategy",
    "BeamSearchStrategy",
    "GeneticStrategy",
    "AnnealingStrategy",
    "SolverType",
    "resolve_solver",
    "get_default_solver_type",
    "get_available_solver_types",
    "create_biomechanical_solver",
]
