"""Tests for configuration loading and logging utilities."""

import logging
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from padfinger.utils.config import (
    AnnealingConfig,
    Config,
    CostWeights,
    EngineConfig,
    GeneticConfig,
    load_config,
    merge_configs,
    save_config,
)
from padfinger.utils.logging_utils import ProgressLogger, get_logger, setup_logging

DEFAULT_CONFIG = Path(__file__).parent.parent / "configs" / "default.yaml"


class TestConfig:
    """Tests for Config and its sections."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = Config()
        assert config.solver == "greedy"
        assert config.instrument.rows == 8
        assert config.instrument.bottom_left_note == 36
        assert config.engine.beam_width == 8
        assert config.engine.stiffness == 0.5
        assert config.engine.left_home == (2.0, 1.5)
        assert config.engine.right_home == (2.0, 5.5)
        assert config.engine.max_reach["ring"] == 3.5
        assert config.engine.weights.finger_strength["pinky"] == 2.5

    def test_load_default_file(self):
        """Test the shipped YAML matches the built-in defaults."""
        config = load_config(str(DEFAULT_CONFIG))
        assert config.engine == Config().engine
        assert config.genetic == Config().genetic
        assert config.annealing == Config().annealing

    def test_missing_file(self, tmp_path):
        """Test a missing config file raises."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)).engine.beam_width == 8

    def test_partial_override(self):
        """Test partial sections merge with defaults."""
        config = Config.from_dict({
            "solver": "beam",
            "engine": {"beam_width": 3, "max_reach": {"thumb": 2.0}},
        })
        assert config.solver == "beam"
        assert config.engine.beam_width == 3
        assert config.engine.max_reach["thumb"] == 2.0
        assert config.engine.max_reach["index"] == 4.0

    def test_save_and_load(self, tmp_path):
        """Test a saved config loads back equal."""
        config = Config.from_dict({
            "engine": {"stiffness": 0.8},
            "annealing": {"seed": 9, "optimize_layout": True},
        })
        path = tmp_path / "saved.yaml"
        save_config(config, str(path))
        loaded = load_config(str(path))
        assert loaded.engine == config.engine
        assert loaded.annealing.seed == 9
        assert loaded.annealing.optimize_layout is True


class TestValidation:
    """Tests for invalid configuration values."""

    def test_beam_width(self):
        """Test beam width must be positive."""
        with pytest.raises(ValueError):
            EngineConfig(beam_width=0)

    def test_unknown_finger(self):
        """Test unknown finger keys are rejected."""
        with pytest.raises(ValueError):
            Config.from_dict({"engine": {"max_reach": {"sixth": 1.0}}})

    def test_cooling_rate(self):
        """Test cooling rate must lie strictly between 0 and 1."""
        with pytest.raises(ValueError):
            AnnealingConfig(cooling_rate=1.0)
        with pytest.raises(ValueError):
            AnnealingConfig(cooling_rate=0.0)

    def test_span_limits(self):
        """Test max span must exceed the ideal reach."""
        with pytest.raises(ValueError):
            CostWeights(ideal_reach=4.0, max_span=4.0)

    def test_elitism(self):
        """Test elitism must leave room for offspring."""
        with pytest.raises(ValueError):
            GeneticConfig(population_size=4, elitism=4)

    def test_unknown_solver(self):
        """Test unknown solver names are rejected."""
        with pytest.raises(ValueError):
            Config.from_dict({"solver": "quantum"})

    def test_solver_name_case_insensitive(self):
        """Test solver names are matched like the solver factory matches them."""
        assert Config.from_dict({"solver": "Beam"}).solver == "beam"
        assert Config.from_dict({"solver": "ANNEALING"}).solver == "annealing"

    def test_layout_beam_width(self):
        """Test the layout search beam must be at least one wide."""
        with pytest.raises(ValueError):
            AnnealingConfig(layout_beam_width=0)


class TestMergeConfigs:
    """Tests for merge_configs."""

    def test_nested_merge(self):
        """Test nested dictionaries merge key by key."""
        base = {"engine": {"beam_width": 8, "stiffness": 0.5}, "solver": "greedy"}
        override = {"engine": {"beam_width": 4}}
        merged = merge_configs(base, override)
        assert merged == {"engine": {"beam_width": 4, "stiffness": 0.5}, "solver": "greedy"}
        assert base["engine"]["beam_width"] == 8


class TestLogging:
    """Tests for logging utilities."""

    def test_setup_logging_accepts_names(self):
        """Test string levels are accepted."""
        setup_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        setup_logging(logging.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_rejects_unknown_level(self):
        """Test an unknown level name raises."""
        with pytest.raises(ValueError):
            setup_logging("LOUD")

    def test_log_file(self, tmp_path):
        """Test logging to a file."""
        log_file = tmp_path / "logs" / "run.log"
        setup_logging("INFO", log_file=str(log_file))
        get_logger("padfinger.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_progress_logger(self):
        """Test progress counting."""
        progress = ProgressLogger("padfinger.test", total=4, log_interval=2)
        progress.start()
        progress.update(cost=1.0)
        progress.update(2)
        assert progress.current == 3
        progress.finish()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
