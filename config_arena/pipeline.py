"""
Experiment orchestration.

Runs a scored function over every configuration of a parameter
specification and, when evaluation criteria are given, ranks the results
in a pairwise tournament and records the outcomes in the rating ledger:

    spec -> cartesian -> run_configurations -> evaluate_pairs -> RatingLedger

Example:
    async def generate(config):
        return await client.complete(model=config['model'],
                                     temperature=config['temperature'])

    result = run_experiment(
        'temperature sweep',
        {'model': ['gpt-4', 'claude-3'], 'temperature': [0.3, 0.7]},
        generate,
        criteria=NumericCriteria(metric='length'),
    )
    print(result.summary.top_performers[0].configuration)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .core.combinations import ParameterSpec, cartesian, validate_spec
from .core.persistence import HistoryStore
from .core.runner import ExecutionResult, ScoredFunction, run_configurations
from .evaluation.criteria import EvaluationCriteria, EvaluationOutcome
from .evaluation.pairwise import (
    EvaluationSummary,
    RankedResult,
    check_criteria,
    evaluate_pairs,
    rank_results,
    summarize_evaluation,
)
from .rating.ledger import ExperimentHistory, RatingLedger

logger = logging.getLogger(__name__)


@dataclass
class ExperimentResult:
    """
    Everything produced by one experiment run.

    outcomes, rankings, summary and history are None when the experiment
    ran without evaluation criteria.
    """
    description: str
    configurations: List[Dict[str, Any]]
    results: List[ExecutionResult]
    outcomes: Optional[List[EvaluationOutcome]] = None
    rankings: Optional[List[RankedResult]] = None
    summary: Optional[EvaluationSummary] = None
    history: Optional[ExperimentHistory] = None

    @property
    def failures(self) -> List[ExecutionResult]:
        return [r for r in self.results if r.failed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'configurations': self.configurations,
            'results': [r.to_dict() for r in self.results],
            'outcomes': None if self.outcomes is None else [o.to_dict() for o in self.outcomes],
            'rankings': None if self.rankings is None else [r.to_dict() for r in self.rankings],
            'summary': None if self.summary is None else self.summary.to_dict(),
        }


async def evaluate_and_record(
    description: str,
    results: Sequence[ExecutionResult],
    criteria: EvaluationCriteria,
    store=None,
    ledger: Optional[RatingLedger] = None,
):
    """
    Evaluate settled results and persist the rating update.

    Returns:
        (outcomes, rankings, summary, history)
    """
    if ledger is None:
        ledger = RatingLedger(store if store is not None else HistoryStore())

    outcomes = await evaluate_pairs(results, criteria)
    rankings = rank_results(results, outcomes)
    summary = summarize_evaluation(rankings, outcomes)
    history = ledger.record_experiment(description, results, outcomes)
    return outcomes, rankings, summary, history


async def run_population(
    description: str,
    configurations: Sequence[Dict[str, Any]],
    fn: ScoredFunction,
    criteria: Optional[EvaluationCriteria] = None,
    store=None,
    ledger: Optional[RatingLedger] = None,
) -> ExperimentResult:
    """
    Run fn over an explicit list of configurations.

    Same contract as experiment(), without the cartesian expansion.
    """
    if criteria is not None:
        check_criteria(criteria)

    configurations = [dict(c) for c in configurations]
    results = await run_configurations(configurations, fn)
    result = ExperimentResult(
        description=description,
        configurations=configurations,
        results=results,
    )

    if criteria is None:
        return result

    outcomes, rankings, summary, history = await evaluate_and_record(
        description, results, criteria, store=store, ledger=ledger,
    )
    result.outcomes = outcomes
    result.rankings = rankings
    result.summary = summary
    result.history = history
    return result


async def experiment(
    description: str,
    spec: ParameterSpec,
    fn: ScoredFunction,
    criteria: Optional[EvaluationCriteria] = None,
    store=None,
    ledger: Optional[RatingLedger] = None,
) -> ExperimentResult:
    """
    Run fn over every configuration of spec.

    Args:
        description: Free text recorded in the experiment log
        spec: Parameter name -> candidate values
        fn: Async scored function taking one configuration
        criteria: Optional evaluation strategy; enables ranking and ratings
        store: History store for the ledger (default: HistoryStore())
        ledger: Ledger to record into (overrides store)

    Raises:
        SpecificationError: if spec has no parameters
        UnsupportedCriteriaError: if criteria is not a known variant
    """
    validate_spec(spec)
    if criteria is not None:
        check_criteria(criteria)

    configurations = cartesian(spec)
    logger.info("Experiment '%s': %d configurations", description, len(configurations))
    return await run_population(
        description, configurations, fn, criteria=criteria, store=store, ledger=ledger,
    )


def run_experiment(
    description: str,
    spec: ParameterSpec,
    fn: ScoredFunction,
    criteria: Optional[EvaluationCriteria] = None,
    store=None,
    ledger: Optional[RatingLedger] = None,
) -> ExperimentResult:
    """Blocking wrapper around experiment()."""
    return asyncio.run(experiment(description, spec, fn, criteria, store, ledger))
