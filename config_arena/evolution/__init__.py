"""
Evolutionary search over configurations.

The engine reads the rating ledger, keeps the top-rated combinations as
elites, and fills the rest of the population by crossover, mutation and
random sampling from the base specification.

Example usage:
    from config_arena.evolution import evolve_configurations, generate_optimal_config

    base = {'model': ['gpt-4', 'claude-3'], 'temperature': [0.3, 0.7, 1.0]}
    population = evolve_configurations(base, population_size=5)

    best = generate_optimal_config(['model', 'temperature'])
"""

from .operators import (
    random_configuration,
    elitism_selection,
    uniform_crossover,
    mutate_configuration,
    population_to_spec,
    diversity,
)
from .engine import (
    EvolutionConfig,
    EvolutionEngine,
    EvolutionRun,
    evolve_configurations,
    generate_optimal_config,
    has_converged,
    run_evolution_cycles,
)

__all__ = [
    # Core classes
    'EvolutionConfig',
    'EvolutionEngine',
    'EvolutionRun',
    # Convenience API
    'evolve_configurations',
    'generate_optimal_config',
    'run_evolution_cycles',
    'has_converged',
    # Operators
    'random_configuration',
    'elitism_selection',
    'uniform_crossover',
    'mutate_configuration',
    'population_to_spec',
    'diversity',
]
