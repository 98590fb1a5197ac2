"""
Configuration Management

Handles loading and merging configuration files.

Usage:
    from padfinger.utils.config import load_config

    config = load_config('configs/default.yaml')
    engine_config = config.engine
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, field


FINGER_NAMES = ("thumb", "index", "middle", "ring", "pinky")


def _default_max_reach() -> Dict[str, float]:
    return {"thumb": 3.0, "index": 4.0, "middle": 4.0, "ring": 3.5, "pinky": 3.0}


def _default_finger_strength() -> Dict[str, float]:
    return {"thumb": 2.0, "index": 1.0, "middle": 1.0, "ring": 1.1, "pinky": 2.5}


def _check_finger_keys(values: Dict[str, float], what: str):
    unknown = set(values) - set(FINGER_NAMES)
    if unknown:
        raise ValueError(f"Unknown finger keys in {what}: {sorted(unknown)}")
    missing = set(FINGER_NAMES) - set(values)
    if missing:
        raise ValueError(f"Missing finger keys in {what}: {sorted(missing)}")


@dataclass
class InstrumentConfig:
    """Pad grid layout."""
    name: str = "Drum 64"
    rows: int = 8
    cols: int = 8
    bottom_left_note: int = 36

    def __post_init__(self):
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid must have at least one pad, got {self.rows}x{self.cols}")


@dataclass
class CostWeights:
    """
    Cost function constants.

    Finger strength weights scale movement and stretch; weaker fingers
    (pinky, thumb) cost more per unit distance.
    """
    finger_strength: Dict[str, float] = field(default_factory=_default_finger_strength)
    ideal_reach: float = 2.0
    max_span: float = 4.0
    span_penalty_scale: float = 10.0
    stretch_weight: float = 0.25
    fatigue_increment: float = 0.5
    bounce_window: float = 5.0
    bounce_penalty: float = 2.0
    crossover_weight: float = 2.0
    lookahead_no_candidate_penalty: float = 10.0
    lookahead_threshold: float = 5.0
    lookahead_fraction: float = 0.1
    unplayable_penalty: float = 1000.0

    def __post_init__(self):
        _check_finger_keys(self.finger_strength, "finger_strength")
        if self.max_span <= self.ideal_reach:
            raise ValueError(
                f"max_span ({self.max_span}) must exceed ideal_reach ({self.ideal_reach})"
            )
        if self.bounce_window <= 0:
            raise ValueError(f"bounce_window must be positive, got {self.bounce_window}")


@dataclass
class EngineConfig:
    """Hand model and search configuration shared by all solvers."""
    beam_width: int = 8
    stiffness: float = 0.5
    left_home: Tuple[float, float] = (2.0, 1.5)
    right_home: Tuple[float, float] = (2.0, 5.5)
    fatigue_recovery_rate: float = 0.5
    max_reach: Dict[str, float] = field(default_factory=_default_max_reach)
    weights: CostWeights = field(default_factory=CostWeights)

    def __post_init__(self):
        if self.beam_width < 1:
            raise ValueError(f"beam_width must be >= 1, got {self.beam_width}")
        if self.fatigue_recovery_rate < 0:
            raise ValueError(
                f"fatigue_recovery_rate must be >= 0, got {self.fatigue_recovery_rate}"
            )
        _check_finger_keys(self.max_reach, "max_reach")
        self.left_home = tuple(float(v) for v in self.left_home)
        self.right_home = tuple(float(v) for v in self.right_home)


@dataclass
class GeneticConfig:
    """Genetic strategy configuration."""
    population_size: int = 30
    generations: int = 40
    mutation_rate: float = 0.05
    tournament_size: int = 2
    elitism: int = 2
    seed: Optional[int] = 42
    yield_every: int = 5

    def __post_init__(self):
        if self.population_size < 2:
            raise ValueError(f"population_size must be >= 2, got {self.population_size}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.elitism >= self.population_size:
            raise ValueError("elitism must be smaller than population_size")


@dataclass
class AnnealingConfig:
    """Simulated annealing strategy configuration."""
    initial_temperature: float = 100.0
    cooling_rate: float = 0.99
    iterations: int = 500
    min_temperature: float = 1e-3
    seed: Optional[int] = 42
    yield_every: int = 50
    # Search pad layouts instead of finger choices
    optimize_layout: bool = False
    layout_beam_width: int = 2

    def __post_init__(self):
        if not 0.0 < self.cooling_rate < 1.0:
            raise ValueError(f"cooling_rate must be in (0, 1), got {self.cooling_rate}")
        if self.initial_temperature <= 0:
            raise ValueError(
                f"initial_temperature must be positive, got {self.initial_temperature}"
            )
        if self.layout_beam_width < 1:
            raise ValueError(f"layout_beam_width must be >= 1, got {self.layout_beam_width}")


@dataclass
class Config:
    """Main configuration container."""
    project_name: str = "padfinger"
    version: str = "1.0.0"
    solver: str = "greedy"
    log_level: str = "INFO"

    # Sub-configurations
    instrument: InstrumentConfig = field(default_factory=InstrumentConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    genetic: GeneticConfig = field(default_factory=GeneticConfig)
    annealing: AnnealingConfig = field(default_factory=AnnealingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        config = cls()
        config_dict = config_dict or {}

        # Project settings
        project = config_dict.get('project', {})
        config.project_name = project.get('name', config.project_name)
        config.version = project.get('version', config.version)
        config.log_level = config_dict.get('logging', {}).get('level', config.log_level)

        # Normalised through the solver factory (imported here, solvers depend on utils)
        from ..solvers.factory import parse_solver_type
        config.solver = parse_solver_type(config_dict.get('solver', config.solver)).value

        # Instrument
        instrument = config_dict.get('instrument', {})
        config.instrument = InstrumentConfig(
            name=instrument.get('name', "Drum 64"),
            rows=instrument.get('rows', 8),
            cols=instrument.get('cols', 8),
            bottom_left_note=instrument.get('bottom_left_note', 36)
        )

        # Engine and cost weights
        engine = config_dict.get('engine', {})
        weights = engine.get('weights', {})
        defaults = CostWeights()
        finger_strength = _default_finger_strength()
        finger_strength.update(weights.get('finger_strength', {}))
        cost_weights = CostWeights(
            finger_strength=finger_strength,
            **{
                name: weights.get(name, getattr(defaults, name))
                for name in (
                    'ideal_reach', 'max_span', 'span_penalty_scale', 'stretch_weight',
                    'fatigue_increment', 'bounce_window', 'bounce_penalty',
                    'crossover_weight', 'lookahead_no_candidate_penalty',
                    'lookahead_threshold', 'lookahead_fraction', 'unplayable_penalty'
                )
            }
        )

        max_reach = _default_max_reach()
        max_reach.update(engine.get('max_reach', {}))
        config.engine = EngineConfig(
            beam_width=engine.get('beam_width', 8),
            stiffness=engine.get('stiffness', 0.5),
            left_home=tuple(engine.get('left_home', (2.0, 1.5))),
            right_home=tuple(engine.get('right_home', (2.0, 5.5))),
            fatigue_recovery_rate=engine.get('fatigue_recovery_rate', 0.5),
            max_reach=max_reach,
            weights=cost_weights
        )

        # Genetic strategy
        genetic = config_dict.get('genetic', {})
        config.genetic = GeneticConfig(
            population_size=genetic.get('population_size', 30),
            generations=genetic.get('generations', 40),
            mutation_rate=genetic.get('mutation_rate', 0.05),
            tournament_size=genetic.get('tournament_size', 2),
            elitism=genetic.get('elitism', 2),
            seed=genetic.get('seed', 42),
            yield_every=genetic.get('yield_every', 5)
        )

        # Annealing strategy
        annealing = config_dict.get('annealing', {})
        config.annealing = AnnealingConfig(
            initial_temperature=annealing.get('initial_temperature', 100.0),
            cooling_rate=annealing.get('cooling_rate', 0.99),
            iterations=annealing.get('iterations', 500),
            min_temperature=annealing.get('min_temperature', 1e-3),
            seed=annealing.get('seed', 42),
            yield_every=annealing.get('yield_every', 50),
            optimize_layout=annealing.get('optimize_layout', False),
            layout_beam_width=annealing.get('layout_beam_width', 2)
        )

        return config


def load_config(config_path: str) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Config object
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config.from_dict(config_dict)


def merge_configs(base: Dict, override: Dict) -> Dict:
    """
    Merge two config dictionaries.

    Args:
        base: Base configuration
        override: Override values

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def config_to_dict(config: Config) -> Dict[str, Any]:
    """Nested dictionary form of a Config, as read by Config.from_dict."""
    weights = config.engine.weights
    return {
        'project': {
            'name': config.project_name,
            'version': config.version
        },
        'logging': {
            'level': config.log_level
        },
        'solver': config.solver,
        'instrument': {
            'name': config.instrument.name,
            'rows': config.instrument.rows,
            'cols': config.instrument.cols,
            'bottom_left_note': config.instrument.bottom_left_note
        },
        'engine': {
            'beam_width': config.engine.beam_width,
            'stiffness': config.engine.stiffness,
            'left_home': list(config.engine.left_home),
            'right_home': list(config.engine.right_home),
            'fatigue_recovery_rate': config.engine.fatigue_recovery_rate,
            'max_reach': dict(config.engine.max_reach),
            'weights': {
                'finger_strength': dict(weights.finger_strength),
                'ideal_reach': weights.ideal_reach,
                'max_span': weights.max_span,
                'span_penalty_scale': weights.span_penalty_scale,
                'stretch_weight': weights.stretch_weight,
                'fatigue_increment': weights.fatigue_increment,
                'bounce_window': weights.bounce_window,
                'bounce_penalty': weights.bounce_penalty,
                'crossover_weight': weights.crossover_weight,
                'lookahead_no_candidate_penalty': weights.lookahead_no_candidate_penalty,
                'lookahead_threshold': weights.lookahead_threshold,
                'lookahead_fraction': weights.lookahead_fraction,
                'unplayable_penalty': weights.unplayable_penalty
            }
        },
        'genetic': {
            'population_size': config.genetic.population_size,
            'generations': config.genetic.generations,
            'mutation_rate': config.genetic.mutation_rate,
            'tournament_size': config.genetic.tournament_size,
            'elitism': config.genetic.elitism,
            'seed': config.genetic.seed,
            'yield_every': config.genetic.yield_every
        },
        'annealing': {
            'initial_temperature': config.annealing.initial_temperature,
            'cooling_rate': config.annealing.cooling_rate,
            'iterations': config.annealing.iterations,
            'min_temperature': config.annealing.min_temperature,
            'seed': config.annealing.seed,
            'yield_every': config.annealing.yield_every,
            'optimize_layout': config.annealing.optimize_layout,
            'layout_beam_width': config.annealing.layout_beam_width
        }
    }


def save_config(config: Config, path: str):
    """Save configuration to YAML file."""
    with open(path, 'w') as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False)
