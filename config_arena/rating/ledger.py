"""
Rating ledger for parameter values and whole configurations.

The ledger keeps one Elo rating per (parameter type, parameter value) and one
per distinct configuration, plus an append-only log of experiment runs.
Rows are created lazily the first time a value or configuration is observed
and are never deleted.

A rating update reads the persisted history, applies every outcome of one
experiment in memory, appends the experiment record, and writes the whole
document back under the store's single-writer lock.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

from .elo import EloRating, K_FACTOR, update_ratings

if TYPE_CHECKING:
    from ..core.runner import ExecutionResult
    from ..evaluation.criteria import EvaluationOutcome

logger = logging.getLogger(__name__)


def canonical_json(value: Any) -> str:
    """Stable serialization used to key parameter values and configurations."""
    return json.dumps(value, sort_keys=True, separators=(',', ':'), default=str)


@dataclass
class ParameterRating:
    """Rating of a single value of one parameter type, e.g. model='gpt-4'."""
    parameter_type: str
    parameter_value: Any
    rating: EloRating = field(default_factory=EloRating)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.parameter_type, canonical_json(self.parameter_value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parameter_type': self.parameter_type,
            'parameter_value': self.parameter_value,
            'rating': self.rating.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParameterRating':
        return cls(
            parameter_type=data['parameter_type'],
            parameter_value=data['parameter_value'],
            rating=EloRating.from_dict(data.get('rating', {})),
        )


@dataclass
class CombinationRating:
    """Rating of a whole configuration."""
    combination: Dict[str, Any]
    rating: EloRating = field(default_factory=EloRating)

    @property
    def key(self) -> str:
        return canonical_json(self.combination)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'combination': self.combination,
            'rating': self.rating.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CombinationRating':
        return cls(
            combination=dict(data['combination']),
            rating=EloRating.from_dict(data.get('rating', {})),
        )


@dataclass
class ExperimentRecord:
    """One entry of the experiment log."""
    description: str
    configurations: List[Dict[str, Any]]
    results: List[Dict[str, Any]]
    outcomes: List[Dict[str, Any]]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'description': self.description,
            'configurations': self.configurations,
            'results': self.results,
            'outcomes': self.outcomes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExperimentRecord':
        return cls(
            description=data.get('description', ''),
            configurations=data.get('configurations', []),
            results=data.get('results', []),
            outcomes=data.get('outcomes', []),
            timestamp=data.get('timestamp', ''),
        )


class ExperimentHistory:
    """
    Aggregate persisted state: all ratings plus the experiment log.

    Loaded once per rating update, mutated in memory, and written back
    as a whole.
    """

    def __init__(
        self,
        parameters: Optional[Iterable[ParameterRating]] = None,
        combinations: Optional[Iterable[CombinationRating]] = None,
        experiments: Optional[Iterable[ExperimentRecord]] = None,
        revision: int = 0,
        last_updated: Optional[str] = None,
    ):
        self.parameters: Dict[Tuple[str, str], ParameterRating] = {
            p.key: p for p in (parameters or [])
        }
        self.combinations: Dict[str, CombinationRating] = {
            c.key: c for c in (combinations or [])
        }
        self.experiments: List[ExperimentRecord] = list(experiments or [])
        self.revision = revision
        self.last_updated = last_updated

    # -- lookups -----------------------------------------------------------

    def find_parameter(self, parameter_type: str, value: Any) -> Optional[ParameterRating]:
        return self.parameters.get((parameter_type, canonical_json(value)))

    def parameter_rating(self, parameter_type: str, value: Any) -> ParameterRating:
        """Return the rating row for a parameter value, creating it if unseen."""
        key = (parameter_type, canonical_json(value))
        row = self.parameters.get(key)
        if row is None:
            row = ParameterRating(parameter_type, value)
            self.parameters[key] = row
        return row

    def find_combination(self, combination: Dict[str, Any]) -> Optional[CombinationRating]:
        return self.combinations.get(canonical_json(combination))

    def combination_rating(self, combination: Dict[str, Any]) -> CombinationRating:
        """Return the rating row for a configuration, creating it if unseen."""
        key = canonical_json(combination)
        row = self.combinations.get(key)
        if row is None:
            row = CombinationRating(dict(combination))
            self.combinations[key] = row
        return row

    def observe(self, configuration: Dict[str, Any]) -> None:
        """Register a configuration and each of its parameter values."""
        self.combination_rating(configuration)
        for name, value in configuration.items():
            self.parameter_rating(name, value)

    # -- queries -----------------------------------------------------------

    def parameter_types(self) -> List[str]:
        """Parameter types in first-seen order."""
        seen: Dict[str, None] = {}
        for parameter_type, _ in self.parameters:
            seen.setdefault(parameter_type, None)
        return list(seen)

    def top_parameters(self, parameter_type: str, limit: Optional[int] = 10) -> List[ParameterRating]:
        """Highest-rated values of one parameter type, best first."""
        rows = [p for p in self.parameters.values() if p.parameter_type == parameter_type]
        rows.sort(key=lambda p: p.rating.rating, reverse=True)
        return rows if limit is None else rows[:limit]

    def top_combinations(self, limit: Optional[int] = 10) -> List[CombinationRating]:
        """Highest-rated configurations, best first."""
        rows = sorted(self.combinations.values(), key=lambda c: c.rating.rating, reverse=True)
        return rows if limit is None else rows[:limit]

    def recent_experiments(self, limit: Optional[int] = None) -> List[ExperimentRecord]:
        if limit is None:
            return list(self.experiments)
        if limit <= 0:
            return []
        return self.experiments[-limit:]

    @property
    def total_experiments(self) -> int:
        return len(self.experiments)

    def is_empty(self) -> bool:
        return not (self.parameters or self.combinations or self.experiments)

    # -- serialization -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            'revision': self.revision,
            'last_updated': self.last_updated,
            'parameters': [p.to_dict() for p in self.parameters.values()],
            'combinations': [c.to_dict() for c in self.combinations.values()],
            'experiments': [e.to_dict() for e in self.experiments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExperimentHistory':
        """Restore history from a dictionary."""
        return cls(
            parameters=[ParameterRating.from_dict(p) for p in data.get('parameters', [])],
            combinations=[CombinationRating.from_dict(c) for c in data.get('combinations', [])],
            experiments=[ExperimentRecord.from_dict(e) for e in data.get('experiments', [])],
            revision=int(data.get('revision', 0)),
            last_updated=data.get('last_updated'),
        )

    def __repr__(self) -> str:
        return (
            f"ExperimentHistory(parameters={len(self.parameters)}, "
            f"combinations={len(self.combinations)}, "
            f"experiments={len(self.experiments)}, revision={self.revision})"
        )


def apply_outcome(
    history: ExperimentHistory,
    winner: Dict[str, Any],
    loser: Dict[str, Any],
    is_draw: bool = False,
    k_factor: float = K_FACTOR,
) -> None:
    """
    Apply one pairwise outcome to the combination and parameter ratings.

    Only parameters whose values differ between the two configurations are
    updated; a shared value learns nothing from the match. Two identical
    configurations leave every rating untouched.
    """
    winner_row = history.combination_rating(winner)
    loser_row = history.combination_rating(loser)
    if winner_row is not loser_row:
        update_ratings(winner_row.rating, loser_row.rating, is_draw, k_factor)

    for name, winner_value in winner.items():
        if name not in loser:
            continue
        loser_value = loser[name]
        if canonical_json(winner_value) == canonical_json(loser_value):
            continue
        update_ratings(
            history.parameter_rating(name, winner_value).rating,
            history.parameter_rating(name, loser_value).rating,
            is_draw,
            k_factor,
        )


class RatingLedger:
    """
    Consumes evaluation outcomes and persists the updated ratings.

    Args:
        store: A history store exposing load(), save() and transaction()
        k_factor: Elo K-factor for every update made by this ledger
    """

    def __init__(self, store, k_factor: float = K_FACTOR):
        self.store = store
        self.k_factor = k_factor

    def load(self) -> ExperimentHistory:
        return self.store.load()

    def apply(
        self,
        history: ExperimentHistory,
        results: Sequence['ExecutionResult'],
        outcomes: Sequence['EvaluationOutcome'],
    ) -> int:
        """
        Apply outcomes of one experiment to an in-memory history.

        Successful configurations are registered even if they played no
        match. Outcomes touching a failed result are skipped.

        Returns:
            Number of outcomes applied
        """
        for result in results:
            if not result.failed:
                history.observe(result.configuration)

        applied = 0
        for outcome in outcomes:
            winner = results[outcome.winner]
            loser = results[outcome.loser]
            if winner.failed or loser.failed:
                logger.debug("Skipping outcome %s: touches a failed result", outcome)
                continue
            apply_outcome(
                history,
                winner.configuration,
                loser.configuration,
                outcome.is_draw,
                self.k_factor,
            )
            applied += 1
        return applied

    def record_experiment(
        self,
        description: str,
        results: Sequence['ExecutionResult'],
        outcomes: Sequence['EvaluationOutcome'],
    ) -> ExperimentHistory:
        """
        Apply outcomes and append an experiment record as one persisted unit.

        Returns:
            The history as written
        """
        with self.store.transaction() as history:
            applied = self.apply(history, results, outcomes)
            history.experiments.append(ExperimentRecord(
                description=description,
                configurations=[dict(r.configuration) for r in results],
                results=[r.to_dict() for r in results],
                outcomes=[o.to_dict() for o in outcomes],
            ))
        logger.info(
            "Recorded experiment '%s': %d outcomes applied, %d combinations rated",
            description, applied, len(history.combinations),
        )
        return history
