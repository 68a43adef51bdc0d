"""
config-arena: rate and evolve experiment configurations.

Runs a scored function over every combination of parameter values, ranks
the results in a pairwise tournament, keeps Elo ratings per parameter value
and per configuration, and evolves new candidate configurations from the
best-rated ones.

Example usage:
    from config_arena import NumericCriteria, run_experiment, generate_optimal_config

    async def generate(config):
        return await client.complete(**config)

    result = run_experiment(
        'model sweep',
        {'model': ['gpt-4', 'claude-3'], 'temperature': [0.3, 0.7]},
        generate,
        criteria=NumericCriteria(metric='length'),
    )
    print(generate_optimal_config(['model', 'temperature']))
"""

from .errors import (
    ArenaError,
    ConfigurationValidationError,
    LedgerIOError,
    SpecificationError,
    UnsupportedCriteriaError,
)
from .core import (
    cartesian,
    validate_spec,
    ExecutionResult,
    run_configurations,
    HistoryStore,
    MemoryHistoryStore,
    template_function,
    from_sync,
)
from .evaluation import (
    NumericCriteria,
    CustomCriteria,
    JudgedCriteria,
    Verdict,
    EvaluationOutcome,
    evaluate_pairs,
)
from .rating import DEFAULT_RATING, K_FACTOR, ExperimentHistory, RatingLedger
from .pipeline import ExperimentResult, experiment, run_experiment
from .evolution import (
    EvolutionConfig,
    EvolutionEngine,
    EvolutionRun,
    evolve_configurations,
    generate_optimal_config,
    has_converged,
    run_evolution_cycles,
)

__version__ = '0.1.0'

__all__ = [
    # Errors
    'ArenaError',
    'SpecificationError',
    'UnsupportedCriteriaError',
    'LedgerIOError',
    'ConfigurationValidationError',
    # Expansion and execution
    'cartesian',
    'validate_spec',
    'ExecutionResult',
    'run_configurations',
    'template_function',
    'from_sync',
    # Evaluation
    'NumericCriteria',
    'CustomCriteria',
    'JudgedCriteria',
    'Verdict',
    'EvaluationOutcome',
    'evaluate_pairs',
    # Ratings
    'DEFAULT_RATING',
    'K_FACTOR',
    'ExperimentHistory',
    'RatingLedger',
    'HistoryStore',
    'MemoryHistoryStore',
    # Experiments
    'ExperimentResult',
    'experiment',
    'run_experiment',
    # Evolution
    'EvolutionConfig',
    'EvolutionEngine',
    'EvolutionRun',
    'evolve_configurations',
    'generate_optimal_config',
    'run_evolution_cycles',
    'has_converged',
]
