"""
Tests for rating entities, the experiment history and the rating ledger.

Run with: python -m pytest tests/test_ledger.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config_arena.core.persistence import MemoryHistoryStore
from config_arena.core.runner import ExecutionResult
from config_arena.evaluation.criteria import EvaluationOutcome
from config_arena.rating.elo import DEFAULT_RATING
from config_arena.rating.ledger import (
    ExperimentHistory,
    RatingLedger,
    apply_outcome,
    canonical_json,
)


class TestExperimentHistory:
    """Tests for ExperimentHistory bookkeeping."""

    def test_canonical_json_ignores_key_order(self):
        assert canonical_json({'b': 1, 'a': 2}) == canonical_json({'a': 2, 'b': 1})

    def test_rows_created_lazily(self):
        history = ExperimentHistory()
        assert history.is_empty()
        assert history.find_parameter('model', 'gpt-4') is None

        row = history.parameter_rating('model', 'gpt-4')
        assert row.rating.rating == DEFAULT_RATING
        assert history.parameter_rating('model', 'gpt-4') is row

    def test_combination_key_order_insensitive(self):
        history = ExperimentHistory()
        row = history.combination_rating({'model': 'gpt-4', 'temperature': 0.7})
        assert history.find_combination({'temperature': 0.7, 'model': 'gpt-4'}) is row

    def test_value_types_are_distinct(self):
        """1 and '1' are different parameter values."""
        history = ExperimentHistory()
        history.parameter_rating('n', 1)
        history.parameter_rating('n', '1')
        assert len(history.parameters) == 2

    def test_queries(self):
        history = ExperimentHistory()
        history.parameter_rating('model', 'a').rating.rating = 1100
        history.parameter_rating('model', 'b').rating.rating = 1300
        history.parameter_rating('temperature', 0.3)

        assert history.parameter_types() == ['model', 'temperature']
        assert [p.parameter_value for p in history.top_parameters('model')] == ['b', 'a']
        assert history.top_parameters('model', limit=1)[0].parameter_value == 'b'
        assert history.top_parameters('unknown') == []

    def test_serialization(self):
        history = ExperimentHistory()
        history.observe({'model': 'gpt-4', 'stop': ['\n']})
        history.parameter_rating('model', 'gpt-4').rating.wins = 3

        restored = ExperimentHistory.from_dict(history.to_dict())
        assert restored.find_parameter('model', 'gpt-4').rating.wins == 3
        assert restored.find_parameter('stop', ['\n']) is not None
        assert restored.find_combination({'stop': ['\n'], 'model': 'gpt-4'}) is not None


class TestApplyOutcome:
    """Tests for apply_outcome()."""

    def test_only_differing_parameters_update(self):
        history = ExperimentHistory()
        winner = {'model': 'gpt-4', 'temperature': 0.7}
        loser = {'model': 'gpt-3.5', 'temperature': 0.7}
        apply_outcome(history, winner, loser)

        assert history.find_parameter('model', 'gpt-4').rating.rating > DEFAULT_RATING
        assert history.find_parameter('model', 'gpt-3.5').rating.rating < DEFAULT_RATING
        # Shared value carries no information
        shared = history.find_parameter('temperature', 0.7)
        assert shared is None or shared.rating.matches == 0

        assert history.find_combination(winner).rating.wins == 1
        assert history.find_combination(loser).rating.losses == 1

    def test_identical_configurations_change_nothing(self):
        history = ExperimentHistory()
        config = {'model': 'gpt-4'}
        apply_outcome(history, config, dict(config))

        row = history.find_combination(config)
        assert row.rating.rating == DEFAULT_RATING
        assert row.rating.matches == 0

    def test_draw(self):
        history = ExperimentHistory()
        apply_outcome(history, {'model': 'a'}, {'model': 'b'}, is_draw=True)
        assert history.find_parameter('model', 'a').rating.rating == pytest.approx(DEFAULT_RATING)
        assert history.find_parameter('model', 'a').rating.draws == 1


class TestRatingLedger:
    """Tests for RatingLedger."""

    def make_results(self):
        return [
            ExecutionResult({'model': 'gpt-4', 'temperature': 0.7}, value='long answer'),
            ExecutionResult({'model': 'gpt-3.5', 'temperature': 0.7}, value='short'),
            ExecutionResult({'model': 'broken', 'temperature': 0.7}, error='timeout'),
        ]

    def test_record_experiment(self):
        store = MemoryHistoryStore()
        ledger = RatingLedger(store)
        results = self.make_results()
        outcomes = [EvaluationOutcome(0, 1, confidence=0.8)]

        history = ledger.record_experiment('models', results, outcomes)

        assert history.revision == 1
        assert history.total_experiments == 1
        record = history.experiments[0]
        assert record.description == 'models'
        assert len(record.results) == 3
        assert record.outcomes == [outcomes[0].to_dict()]

        persisted = store.load()
        assert persisted.find_parameter('model', 'gpt-4').rating.rating > DEFAULT_RATING
        assert persisted.revision == 1

    def test_failed_results_not_registered(self):
        store = MemoryHistoryStore()
        RatingLedger(store).record_experiment('models', self.make_results(), [])

        history = store.load()
        assert history.find_parameter('model', 'broken') is None
        assert history.find_parameter('model', 'gpt-3.5') is not None

    def test_outcome_touching_failure_skipped(self):
        history = ExperimentHistory()
        applied = RatingLedger(MemoryHistoryStore()).apply(
            history, self.make_results(), [EvaluationOutcome(0, 2), EvaluationOutcome(0, 1)]
        )
        assert applied == 1
        assert history.find_combination({'model': 'gpt-4', 'temperature': 0.7}).rating.matches == 1

    def test_updates_accumulate_across_experiments(self):
        store = MemoryHistoryStore()
        ledger = RatingLedger(store)
        for _ in range(3):
            ledger.record_experiment('repeat', self.make_results(), [EvaluationOutcome(0, 1)])

        history = store.load()
        assert history.revision == 3
        assert history.total_experiments == 3
        assert history.find_parameter('model', 'gpt-4').rating.wins == 3

    def test_error_inside_transaction_persists_nothing(self):
        store = MemoryHistoryStore()
        ledger = RatingLedger(store)
        with pytest.raises(IndexError):
            ledger.record_experiment('bad', self.make_results(), [EvaluationOutcome(0, 7)])
        assert store.load().is_empty()
