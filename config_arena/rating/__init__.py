"""Elo ratings for parameter values and configurations."""

from .elo import DEFAULT_RATING, K_FACTOR, EloRating, expected_score, update_ratings
from .ledger import (
    ParameterRating,
    CombinationRating,
    ExperimentRecord,
    ExperimentHistory,
    RatingLedger,
    apply_outcome,
    canonical_json,
)

__all__ = [
    # Elo model
    'DEFAULT_RATING',
    'K_FACTOR',
    'EloRating',
    'expected_score',
    'update_ratings',
    # Ledger
    'ParameterRating',
    'CombinationRating',
    'ExperimentRecord',
    'ExperimentHistory',
    'RatingLedger',
    'apply_outcome',
    'canonical_json',
]
