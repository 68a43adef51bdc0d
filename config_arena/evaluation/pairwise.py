"""
Pairwise tournament evaluation of execution results.

Every unordered pair (i, j), i < j, of successful results is compared once,
so k successful results give k(k-1)/2 outcomes. Pairs touching a failed
result are skipped: they are neither a match nor a rating signal.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from itertools import combinations
from numbers import Real
from collections.abc import Mapping, Sized
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.runner import ExecutionResult
from ..errors import UnsupportedCriteriaError
from .criteria import (
    Choice,
    CustomCriteria,
    EvaluationCriteria,
    EvaluationOutcome,
    JudgedCriteria,
    NumericCriteria,
    Verdict,
    parse_choice,
)

logger = logging.getLogger(__name__)

_SUPPORTED_CRITERIA = (NumericCriteria, CustomCriteria, JudgedCriteria)


def check_criteria(criteria: Any) -> None:
    """Fail loudly on anything that is not a known criteria variant."""
    if not isinstance(criteria, _SUPPORTED_CRITERIA):
        raise UnsupportedCriteriaError(criteria)


# =============================================================================
# Numeric metrics
# =============================================================================

def extract_metric(value: Any, metric: Optional[str] = None) -> Optional[float]:
    """
    Extract a scalar from a result value.

    Args:
        value: Result produced by the scored function
        metric: None to use the value itself, 'length' for len(value), or a
            dotted path ('metrics.accuracy', 'text.length') into mappings
            and attributes

    Returns:
        The metric as a float, or None if it cannot be extracted
    """
    current = value
    if metric:
        for part in metric.split('.'):
            if isinstance(current, Mapping):
                if part not in current:
                    return None
                current = current[part]
            elif part == 'length' and isinstance(current, Sized):
                current = len(current)
            elif hasattr(current, part):
                current = getattr(current, part)
            else:
                return None

    if isinstance(current, bool) or not isinstance(current, Real):
        return None
    current = float(current)
    if math.isnan(current):
        return None
    return current


def compare_numeric(a: Any, b: Any, criteria: NumericCriteria) -> Tuple[Choice, float, str]:
    """
    Compare two result values by metric.

    Returns:
        (choice, confidence, rationale) from the perspective of a
    """
    metric_a = extract_metric(a, criteria.metric)
    metric_b = extract_metric(b, criteria.metric)
    label = criteria.metric or 'value'

    if metric_a is None and metric_b is None:
        return Choice.DRAW, 0.0, f"{label} unavailable for both results"
    if metric_a is None:
        return Choice.B, 1.0, f"{label} unavailable for result A"
    if metric_b is None:
        return Choice.A, 1.0, f"{label} unavailable for result B"

    if metric_a == metric_b:
        return Choice.DRAW, 1.0, f"equal {label}: {metric_a:g}"

    diff = metric_a - metric_b
    if not criteria.higher_is_better:
        diff = -diff

    scale = max(abs(metric_a), abs(metric_b))
    if math.isinf(scale):
        confidence = 0.95
    else:
        confidence = min(0.95, 0.5 + 0.45 * abs(diff) / scale)
    choice = Choice.A if diff > 0 else Choice.B
    return choice, confidence, f"{label} {metric_a:g} vs {metric_b:g}"


# =============================================================================
# Pair evaluation
# =============================================================================

def _to_outcome(
    i: int,
    j: int,
    choice: Choice,
    confidence: Optional[float],
    rationale: Optional[str],
) -> EvaluationOutcome:
    if choice is Choice.A:
        return EvaluationOutcome(i, j, False, confidence, rationale)
    if choice is Choice.B:
        return EvaluationOutcome(j, i, False, confidence, rationale)
    return EvaluationOutcome(i, j, True, confidence, rationale)


async def _judge_pair(
    criteria: JudgedCriteria,
    i: int,
    j: int,
    a: Any,
    b: Any,
) -> EvaluationOutcome:
    verdict = Verdict.from_value(await criteria.judge(a, b, criteria.prompt))
    return _to_outcome(i, j, verdict.choice, verdict.confidence, verdict.reasoning or None)


async def evaluate_pairs(
    results: Sequence[ExecutionResult],
    criteria: EvaluationCriteria,
) -> List[EvaluationOutcome]:
    """
    Compare every pair of successful results.

    Args:
        results: Execution results, index-aligned with their configurations
        criteria: One of NumericCriteria, CustomCriteria, JudgedCriteria

    Returns:
        Outcomes in (i, j) lexicographic pair order

    Raises:
        UnsupportedCriteriaError: for an unknown criteria variant
    """
    check_criteria(criteria)

    valid = [i for i, r in enumerate(results) if not r.failed]
    pairs = list(combinations(valid, 2))

    if isinstance(criteria, NumericCriteria):
        outcomes = []
        for i, j in pairs:
            choice, confidence, rationale = compare_numeric(
                results[i].value, results[j].value, criteria
            )
            outcomes.append(_to_outcome(i, j, choice, confidence, rationale))
    elif isinstance(criteria, CustomCriteria):
        outcomes = []
        for i, j in pairs:
            choice = parse_choice(criteria.compare(results[i].value, results[j].value))
            outcomes.append(_to_outcome(
                i, j, choice, criteria.confidence, 'custom comparator'
            ))
    elif isinstance(criteria, JudgedCriteria):
        outcomes = list(await asyncio.gather(*(
            _judge_pair(criteria, i, j, results[i].value, results[j].value)
            for i, j in pairs
        )))
    else:
        raise UnsupportedCriteriaError(criteria)

    for outcome in outcomes:
        logger.debug("Outcome %s", outcome)
    logger.info(
        "Evaluated %d pairs from %d valid results (%d skipped as failed)",
        len(outcomes), len(valid), len(results) - len(valid),
    )
    return outcomes


# =============================================================================
# Ranking and summary
# =============================================================================

@dataclass
class RankedResult:
    """Tournament standing of one result."""
    index: int
    configuration: Dict[str, Any]
    wins: int = 0
    losses: int = 0
    draws: int = 0
    rank: int = 0
    failed: bool = False

    @property
    def score(self) -> float:
        """Tournament points: one per win, half per draw."""
        return self.wins + 0.5 * self.draws

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'configuration': self.configuration,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'score': self.score,
            'rank': self.rank,
            'failed': self.failed,
        }


def rank_results(
    results: Sequence[ExecutionResult],
    outcomes: Sequence[EvaluationOutcome],
) -> List[RankedResult]:
    """
    Rank results by tournament score.

    Successful results are ranked 1..k by score (ties keep input order);
    failed results follow in input order.

    Returns:
        One RankedResult per result, index-aligned with results
    """
    ranked = [
        RankedResult(index=i, configuration=r.configuration, failed=r.failed)
        for i, r in enumerate(results)
    ]
    for outcome in outcomes:
        if outcome.is_draw:
            ranked[outcome.winner].draws += 1
            ranked[outcome.loser].draws += 1
        else:
            ranked[outcome.winner].wins += 1
            ranked[outcome.loser].losses += 1

    order = sorted(
        (r for r in ranked if not r.failed),
        key=lambda r: (-r.score, r.index),
    )
    order.extend(r for r in ranked if r.failed)
    for position, r in enumerate(order, start=1):
        r.rank = position
    return ranked


@dataclass
class EvaluationSummary:
    """Aggregate view of one experiment's tournament."""
    total_comparisons: int
    draws: int
    average_confidence: float
    top_performers: List[RankedResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_comparisons': self.total_comparisons,
            'draws': self.draws,
            'average_confidence': self.average_confidence,
            'top_performers': [r.to_dict() for r in self.top_performers],
        }


def summarize_evaluation(
    ranked: Sequence[RankedResult],
    outcomes: Sequence[EvaluationOutcome],
    top_n: int = 3,
) -> EvaluationSummary:
    """Summarize outcomes and pick the top_n successful results."""
    confidences = [o.confidence for o in outcomes if o.confidence is not None]
    average_confidence = float(np.mean(confidences)) if confidences else 0.0

    top = sorted((r for r in ranked if not r.failed), key=lambda r: r.rank)[:top_n]
    return EvaluationSummary(
        total_comparisons=len(outcomes),
        draws=sum(1 for o in outcomes if o.is_draw),
        average_confidence=average_confidence,
        top_performers=top,
    )
