"""
Evolutionary operators over configurations: selection, crossover, mutation.

Every operator takes the random source explicitly so a seeded
random.Random reproduces the same population.
"""

import random
from typing import Any, Dict, List, Optional, Sequence

from ..core.combinations import Configuration, ParameterSpec
from ..rating.ledger import ExperimentHistory, canonical_json


def _sampleable(base_spec: ParameterSpec) -> Dict[str, Sequence[Any]]:
    # Parameters without candidates cannot be sampled
    return {name: values for name, values in base_spec.items() if len(values) > 0}


# =============================================================================
# Random sampling
# =============================================================================

def random_configuration(base_spec: ParameterSpec, rng: random.Random) -> Configuration:
    """Sample every parameter independently from its candidate list."""
    return {name: rng.choice(list(values)) for name, values in _sampleable(base_spec).items()}


# =============================================================================
# Selection
# =============================================================================

def elitism_selection(history: ExperimentHistory, n_elite: int = 2) -> List[Configuration]:
    """
    Top n_elite rated configurations, highest first.

    Returns:
        Copies of the elite combinations (fewer than n_elite if the history
        holds fewer)
    """
    if n_elite <= 0:
        return []
    return [dict(row.combination) for row in history.top_combinations(n_elite)]


# =============================================================================
# Crossover
# =============================================================================

def uniform_crossover(
    parent1: Configuration,
    parent2: Configuration,
    base_spec: ParameterSpec,
    rng: random.Random,
    swap_prob: float = 0.5,
) -> Configuration:
    """
    Build one child, choosing each parameter from either parent.

    Each parameter of base_spec comes from parent2 with probability
    swap_prob, otherwise from parent1. If the chosen parent lacks the
    parameter, a random candidate from base_spec is used instead.
    """
    child = {}
    for name, values in _sampleable(base_spec).items():
        parent = parent2 if rng.random() < swap_prob else parent1
        if name in parent:
            child[name] = parent[name]
        else:
            child[name] = rng.choice(list(values))
    return child


# =============================================================================
# Mutation
# =============================================================================

def mutate_configuration(
    configuration: Configuration,
    base_spec: ParameterSpec,
    rng: random.Random,
    mutation_rate: float = 0.1,
) -> Configuration:
    """
    Replace each parameter independently with probability mutation_rate.

    Parameters of base_spec missing from the configuration are filled with
    a random candidate. The input configuration is not modified.
    """
    mutated = {}
    for name, values in _sampleable(base_spec).items():
        if name not in configuration or rng.random() < mutation_rate:
            mutated[name] = rng.choice(list(values))
        else:
            mutated[name] = configuration[name]
    return mutated


# =============================================================================
# Population helpers
# =============================================================================

def population_to_spec(population: Sequence[Configuration]) -> Dict[str, List[Any]]:
    """
    Collapse a population back into a parameter specification.

    Each parameter maps to its distinct values in first-seen order.
    """
    spec: Dict[str, List[Any]] = {}
    for configuration in population:
        for name, value in configuration.items():
            values = spec.setdefault(name, [])
            if value not in values:
                values.append(value)
    return spec


def fit_population_size(
    population: List[Configuration],
    population_size: int,
    base_spec: ParameterSpec,
    rng: random.Random,
) -> List[Configuration]:
    """Truncate, or pad with random configurations, to exactly population_size."""
    population = population[:population_size]
    while len(population) < population_size:
        population.append(random_configuration(base_spec, rng))
    return population


def diversity(population: Sequence[Configuration]) -> Optional[float]:
    """Fraction of distinct configurations in the population (None if empty)."""
    if not population:
        return None
    distinct = {canonical_json(c) for c in population}
    return len(distinct) / len(population)
