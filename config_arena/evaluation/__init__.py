"""
Pairwise evaluation of execution results.

Example usage:
    from config_arena.evaluation import NumericCriteria, evaluate_pairs, rank_results

    outcomes = await evaluate_pairs(results, NumericCriteria(metric='length'))
    ranked = rank_results(results, outcomes)
"""

from .criteria import (
    Choice,
    Verdict,
    NumericCriteria,
    CustomCriteria,
    JudgedCriteria,
    EvaluationCriteria,
    EvaluationOutcome,
    parse_choice,
)
from .pairwise import (
    RankedResult,
    EvaluationSummary,
    check_criteria,
    compare_numeric,
    evaluate_pairs,
    extract_metric,
    rank_results,
    summarize_evaluation,
)

__all__ = [
    # Strategies
    'NumericCriteria',
    'CustomCriteria',
    'JudgedCriteria',
    'EvaluationCriteria',
    # Verdicts and outcomes
    'Choice',
    'Verdict',
    'EvaluationOutcome',
    'parse_choice',
    # Evaluation
    'check_criteria',
    'compare_numeric',
    'evaluate_pairs',
    'extract_metric',
    # Ranking
    'RankedResult',
    'EvaluationSummary',
    'rank_results',
    'summarize_evaluation',
]
