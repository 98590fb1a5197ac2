"""Tests for the beam, genetic and annealing strategies and the shared evaluator."""

import asyncio
import math
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from padfinger.grid.mapping import GridMapping
from padfinger.hand.models import FingerType, HandSide
from padfinger.solvers.annealing import (
    AnnealingStrategy,
    acceptance_probability,
    result_cost,
    term_shares,
)
from padfinger.solvers.beam import BeamSearchStrategy
from padfinger.solvers.evaluation import AssignmentEvaluator, prepare_events
from padfinger.solvers.genetic import GeneticStrategy
from padfinger.solvers.greedy import GreedyStrategy
from padfinger.solvers.types import UNPLAYABLE, ManualAssignment, NoteEvent, Performance
from padfinger.utils.config import AnnealingConfig, EngineConfig, GeneticConfig, InstrumentConfig


def make_performance(notes):
    """Build a performance from (note, time) pairs."""
    return Performance(events=[NoteEvent(note_number=n, start_time=t) for n, t in notes])


def assert_unique_per_instant(result):
    """No (hand, finger) twice among playable events sharing a start time."""
    seen = set()
    for event in result.debug_events:
        if not event.is_playable:
            continue
        key = (round(event.start_time, 6), event.assigned_hand, event.finger)
        assert key not in seen, f"{key} used twice"
        seen.add(key)


GROOVE = [
    (36, 0.0), (42, 0.0), (42, 0.25), (38, 0.5), (42, 0.5), (42, 0.75),
    (36, 1.0), (42, 1.0), (36, 1.25), (42, 1.25), (38, 1.5), (46, 1.5),
    (45, 1.75), (43, 1.875), (41, 2.0), (36, 2.0),
]


@pytest.fixture
def instrument():
    return InstrumentConfig()


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def evaluator(instrument, config):
    return AssignmentEvaluator(config, instrument.cols / 2)


class TestAssignmentEvaluator:
    """Tests for replaying choice sequences."""

    def test_repair_fills_missing_choices(self, instrument, evaluator):
        """Test None choices are repaired to feasible ones."""
        events = prepare_events(make_performance([(36, 0.0), (43, 0.5)]), GreedyStrategy(instrument).resolver)
        evaluation = evaluator.evaluate(events, [None, None])
        assert all(e.is_playable for e in evaluation.debug_events)
        assert all(c is not None for c in evaluation.choices)

    def test_without_repair(self, instrument, config):
        """Test unrepaired empty choices are unplayable at the fixed penalty."""
        strict = AssignmentEvaluator(config, instrument.cols / 2, repair=False)
        events = prepare_events(make_performance([(36, 0.0), (43, 0.5)]), GreedyStrategy(instrument).resolver)
        evaluation = strict.evaluate(events, [None, None])
        assert evaluation.unplayable_count == 2
        assert evaluation.total_cost == pytest.approx(2 * config.weights.unplayable_penalty)

    def test_repair_replaces_reused_finger(self, instrument, evaluator):
        """Test a finger chosen twice in one instant is repaired."""
        events = prepare_events(make_performance([(36, 0.0), (37, 0.0)]), GreedyStrategy(instrument).resolver)
        choice = (HandSide.LEFT, FingerType.INDEX)
        evaluation = evaluator.evaluate(events, [choice, choice])
        assert evaluation.choices[0] == choice
        assert evaluation.choices[1] is not None
        assert evaluation.choices[1] != choice

    def test_length_mismatch(self, instrument, evaluator):
        """Test the choice sequence must match the events."""
        events = prepare_events(make_performance([(36, 0.0)]), GreedyStrategy(instrument).resolver)
        with pytest.raises(ValueError):
            evaluator.evaluate(events, [])

    def test_replays_greedy_exactly(self, instrument, config, evaluator):
        """Test the greedy choices are feasible when replayed."""
        greedy = GreedyStrategy(instrument)
        performance = make_performance(GROOVE)
        choices = greedy.initial_choices(performance, config)
        evaluation = evaluator.evaluate(prepare_events(performance, greedy.resolver), choices)
        assert evaluation.choices == choices

    def test_repair_keeps_forced_finger_free(self, instrument, evaluator):
        """Test a free choice that takes an override's finger is repaired."""
        events = prepare_events(make_performance([(36, 0.0), (37, 0.0)]), GreedyStrategy(instrument).resolver)
        forced = (HandSide.LEFT, FingerType.INDEX)
        manual = {1: ManualAssignment(1, *forced)}
        evaluation = evaluator.evaluate(events, [forced, None], manual)
        assert evaluation.choices[1] == forced
        assert evaluation.choices[0] is not None
        assert evaluation.choices[0] != forced
        assert evaluation.unplayable_count == 0

    def test_pinned_pad_overrides_choice(self, instrument, config):
        """Test a choice against a pad's finger constraint is repaired to the pin."""
        mapping = GridMapping.from_note_table({60: (2, 5)})
        mapping.finger_constraints = {"2,5": "R4"}
        strategy = GreedyStrategy(instrument, mapping)
        events = prepare_events(make_performance([(60, 0.0)]), strategy.resolver)
        evaluation = strategy.new_evaluator(config).evaluate(
            events, [(HandSide.LEFT, FingerType.THUMB)]
        )
        assert evaluation.choices == [(HandSide.RIGHT, FingerType.RING)]


class TestBeamSearch:
    """Tests for BeamSearchStrategy."""

    def test_chord_invariants(self, instrument, config):
        """Test instant uniqueness and the eleven-note limit."""
        result = BeamSearchStrategy(instrument).solve_sync(
            make_performance([(n, 0.0) for n in range(36, 47)]), config
        )
        assert len(result.debug_events) == 11
        assert sum(1 for e in result.debug_events if e.is_playable) <= 10
        assert result.unplayable_count >= 1
        assert_unique_per_instant(result)

    def test_groove(self, instrument, config):
        """Test a groove is fully playable and keeps every event."""
        performance = make_performance(GROOVE)
        result = BeamSearchStrategy(instrument).solve_sync(performance, config)
        assert sorted(e.event_index for e in result.debug_events) == list(range(len(GROOVE)))
        assert result.unplayable_count == 0
        assert_unique_per_instant(result)
        assert result.solver_name == "beam"

    def test_unmapped_note(self, instrument, config):
        """Test unmapped notes become unplayable steps."""
        result = BeamSearchStrategy(instrument).solve_sync(
            make_performance([(36, 0.0), (10, 0.5)]), config
        )
        assert result.debug_events[1].assigned_hand == UNPLAYABLE

    def test_width_one_is_deterministic(self, instrument):
        """Test a width-one beam gives the same answer every time."""
        narrow = EngineConfig(beam_width=1)
        strategy = BeamSearchStrategy(instrument)
        a = strategy.solve_sync(make_performance(GROOVE), narrow)
        b = strategy.solve_sync(make_performance(GROOVE), narrow)
        assert a.choices == b.choices

    def test_async_solve(self, instrument, config):
        """Test the async entry point returns the same result."""
        strategy = BeamSearchStrategy(instrument)
        sync_result = strategy.solve_sync(make_performance(GROOVE), config)
        async_result = asyncio.run(strategy.solve(make_performance(GROOVE), config))
        assert sync_result.choices == async_result.choices


class TestGeneticStrategy:
    """Tests for GeneticStrategy."""

    @pytest.fixture
    def strategy(self, instrument):
        params = GeneticConfig(population_size=10, generations=6, seed=11)
        return GeneticStrategy(instrument, genetic_config=params)

    def test_evolution_log(self, strategy, config):
        """Test one log entry per generation with ordered statistics."""
        result = asyncio.run(strategy.solve(make_performance(GROOVE), config))
        log = result.evolution_log
        assert [entry.generation for entry in log] == list(range(7))
        for entry in log:
            assert entry.best_cost <= entry.average_cost <= entry.worst_cost
        bests = [entry.best_cost for entry in log]
        assert all(b <= a + 1e-9 for a, b in zip(bests, bests[1:]))

    def test_never_worse_than_greedy(self, strategy, instrument, config, evaluator):
        """Test elitism keeps the greedy seed's cost as an upper bound."""
        performance = make_performance(GROOVE)
        greedy = GreedyStrategy(instrument)
        events = prepare_events(performance, greedy.resolver)
        greedy_cost = evaluator.evaluate(events, greedy.initial_choices(performance, config)).total_cost

        result = asyncio.run(strategy.solve(performance, config))
        genetic_cost = evaluator.evaluate(events, result.choices).total_cost
        assert genetic_cost <= greedy_cost + 1e-9
        assert_unique_per_instant(result)

    def test_seeded_runs_match(self, instrument, config):
        """Test the same seed reproduces the same assignment."""
        params = GeneticConfig(population_size=8, generations=4, seed=5)
        a = asyncio.run(GeneticStrategy(instrument, genetic_config=params).solve(
            make_performance(GROOVE), config))
        b = asyncio.run(GeneticStrategy(instrument, genetic_config=params).solve(
            make_performance(GROOVE), config))
        assert a.choices == b.choices

    def test_sync_not_supported(self, strategy, config):
        """Test the genetic strategy is async only."""
        assert not strategy.is_synchronous
        with pytest.raises(RuntimeError):
            strategy.solve_sync(make_performance(GROOVE), config)


class TestAnnealingStrategy:
    """Tests for AnnealingStrategy."""

    @pytest.fixture
    def strategy(self, instrument):
        params = AnnealingConfig(iterations=60, initial_temperature=20.0, seed=3)
        return AnnealingStrategy(instrument, annealing_config=params)

    def test_acceptance_probability(self):
        """Test the Metropolis criterion."""
        assert acceptance_probability(-1.0, 10.0) == 1.0
        assert acceptance_probability(0.0, 10.0) == 1.0
        assert acceptance_probability(10.0, 10.0) == pytest.approx(math.exp(-1.0))

    def test_term_shares(self):
        """Test shares sum to one, or are all zero for a zero total."""
        shares = term_shares({"movement": 1.0, "drift": 3.0})
        assert shares == {"movement": 0.25, "drift": 0.75}
        assert term_shares({"movement": 0.0}) == {"movement": 0.0}

    def test_trace(self, strategy, config):
        """Test trace length, cooling and acceptance of improving moves."""
        result = asyncio.run(strategy.solve(make_performance(GROOVE), config))
        trace = result.annealing_trace
        assert len(trace) == 60
        assert len(result.optimization_log) == 60
        assert trace[0].temperature == 20.0
        assert trace[1].temperature == pytest.approx(20.0 * 0.99)

        for snapshot in trace:
            if snapshot.delta_cost <= 0:
                assert snapshot.accepted
                assert snapshot.acceptance_probability == 1.0
            total = sum(snapshot.term_shares.values())
            assert total == pytest.approx(1.0) or total == 0.0

        bests = [s.best_cost for s in trace]
        assert all(b <= a + 1e-9 for a, b in zip(bests, bests[1:]))

    def test_result_is_best_seen(self, strategy, instrument, config, evaluator):
        """Test the returned assignment has the best traced cost."""
        performance = make_performance(GROOVE)
        result = asyncio.run(strategy.solve(performance, config))
        events = prepare_events(performance, GreedyStrategy(instrument).resolver)
        cost = evaluator.evaluate(events, result.choices).total_cost
        assert cost == pytest.approx(result.annealing_trace[-1].best_cost)
        assert_unique_per_instant(result)

    def test_seeded_runs_match(self, instrument, config):
        """Test the same seed reproduces the same assignment and trace."""
        params = AnnealingConfig(iterations=40, initial_temperature=20.0, seed=8)
        a = asyncio.run(AnnealingStrategy(instrument, annealing_config=params).solve(
            make_performance(GROOVE), config))
        b = asyncio.run(AnnealingStrategy(instrument, annealing_config=params).solve(
            make_performance(GROOVE), config))
        assert a.choices == b.choices
        assert [s.current_cost for s in a.annealing_trace] == [s.current_cost for s in b.annealing_trace]
        assert [s.accepted for s in a.annealing_trace] == [s.accepted for s in b.annealing_trace]

    def test_nothing_to_anneal(self, strategy, config):
        """Test a performance with only unmapped notes runs no iterations."""
        result = asyncio.run(strategy.solve(make_performance([(10, 0.0)]), config))
        assert result.annealing_trace == []
        assert result.unplayable_count == 1


LAYOUT_GROOVE = [(36, 0.0), (43, 0.0), (38, 0.5), (42, 0.75), (36, 1.0), (43, 1.0)]


class TestLayoutAnnealing:
    """Tests for annealing the pad layout."""

    @pytest.fixture
    def params(self):
        return AnnealingConfig(
            iterations=15, initial_temperature=5.0, seed=4, optimize_layout=True
        )

    def test_returns_best_layout(self, instrument, config, params):
        """Test the best layout keeps every voice and is used for the final result."""
        strategy = AnnealingStrategy(instrument, annealing_config=params)
        result = asyncio.run(strategy.solve(make_performance(LAYOUT_GROOVE), config))

        assert result.solver_name == "annealing"
        assert result.best_mapping is not None
        assert strategy.best_mapping == result.best_mapping
        notes = sorted(v.original_midi_note for v in result.best_mapping.cells.values())
        assert notes == sorted({n for n, _ in LAYOUT_GROOVE})
        assert len(result.annealing_trace) == 15
        assert len(result.optimization_log) == 15

        for event in result.debug_events:
            assert result.best_mapping.cells[event.pad_id].original_midi_note == event.note_number

    def test_best_cost_never_above_start(self, instrument, config, params):
        """Test the best layout costs no more than the starting one."""
        performance = make_performance(LAYOUT_GROOVE)
        start, _ = result_cost(
            BeamSearchStrategy(instrument).solve_sync(performance, EngineConfig(beam_width=2)),
            config.weights.unplayable_penalty
        )
        result = asyncio.run(
            AnnealingStrategy(instrument, annealing_config=params).solve(performance, config)
        )
        bests = [s.best_cost for s in result.annealing_trace]
        assert bests[0] <= start + 1e-9
        assert all(b <= a + 1e-9 for a, b in zip(bests, bests[1:]))

    def test_seeded_layouts_match(self, instrument, config, params):
        """Test the same seed finds the same layout."""
        a = asyncio.run(AnnealingStrategy(instrument, annealing_config=params).solve(
            make_performance(LAYOUT_GROOVE), config))
        b = asyncio.run(AnnealingStrategy(instrument, annealing_config=params).solve(
            make_performance(LAYOUT_GROOVE), config))
        assert a.best_mapping == b.best_mapping

    def test_assignment_mode_has_no_layout(self, instrument, config):
        """Test the default mode leaves best_mapping unset."""
        strategy = AnnealingStrategy(instrument, annealing_config=AnnealingConfig(iterations=5))
        result = asyncio.run(strategy.solve(make_performance(LAYOUT_GROOVE), config))
        assert result.best_mapping is None
        assert strategy.best_mapping is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
