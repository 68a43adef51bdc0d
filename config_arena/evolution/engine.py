"""
Evolutionary search over configurations, driven by the rating ledger.

One evolution step:
1. Load the persisted history
2. Seed the population with the top-rated combinations (elites)
3. Fill remaining slots by crossover, mutation, or random sampling
4. Truncate or pad to exactly population_size

run_evolution_cycles() closes the loop by running, evaluating and rating
each evolved population before evolving the next one.
"""

import logging
import random
from dataclasses import dataclass, asdict, field, replace
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..core.combinations import Configuration, ParameterSpec, validate_spec
from ..core.persistence import HistoryStore
from ..core.runner import ScoredFunction
from ..evaluation.criteria import EvaluationCriteria
from ..evaluation.pairwise import check_criteria
from ..pipeline import ExperimentResult, run_population
from ..rating.ledger import ExperimentHistory, RatingLedger
from .operators import (
    diversity,
    elitism_selection,
    fit_population_size,
    mutate_configuration,
    random_configuration,
    uniform_crossover,
)

logger = logging.getLogger(__name__)


@dataclass
class EvolutionConfig:
    """Configuration for one evolution step."""
    population_size: int = 10
    elite_count: int = 2

    # Slot-filling probabilities
    crossover_rate: float = 0.7
    mutation_share: float = 0.8

    # Per-parameter replacement probability within a mutation
    mutation_rate: float = 0.1

    # Early stopping for run_evolution_cycles: stop once the best combination
    # rating moves less than convergence_threshold for `patience` consecutive
    # generations. None disables it.
    patience: Optional[int] = 3
    convergence_threshold: float = 10.0

    def __post_init__(self):
        if self.population_size < 0:
            raise ValueError(f"population_size must be >= 0, got {self.population_size}")
        if self.elite_count < 0:
            raise ValueError(f"elite_count must be >= 0, got {self.elite_count}")
        for name in ('crossover_rate', 'mutation_share', 'mutation_rate'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.patience is not None and self.patience < 1:
            raise ValueError(f"patience must be >= 1 or None, got {self.patience}")
        if self.convergence_threshold < 0:
            raise ValueError(f"convergence_threshold must be >= 0, got {self.convergence_threshold}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class EvolutionEngine:
    """
    Produces new populations from the ledger's rated history.

    Args:
        store: History store to read ratings from (default: HistoryStore())
        config: Evolution parameters
        rng: Random source; pass random.Random(seed) for reproducible runs

    Example:
        engine = EvolutionEngine(store, EvolutionConfig(population_size=5))
        population = engine.evolve({'model': ['gpt-4', 'claude-3'],
                                    'temperature': [0.3, 0.7, 1.0]})
    """

    def __init__(
        self,
        store=None,
        config: Optional[EvolutionConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store if store is not None else HistoryStore()
        self.config = config or EvolutionConfig()
        self.rng = rng if rng is not None else random.Random()

    def _next_child(self, elites: List[Configuration], base_spec: ParameterSpec) -> Configuration:
        config = self.config
        rng = self.rng

        if len(elites) >= 2 and rng.random() < config.crossover_rate:
            parent1, parent2 = rng.sample(elites, 2)
            return uniform_crossover(parent1, parent2, base_spec, rng)

        if elites and rng.random() < config.mutation_share:
            parent = rng.choice(elites)
            return mutate_configuration(parent, base_spec, rng, config.mutation_rate)

        return random_configuration(base_spec, rng)

    def evolve(
        self,
        base_spec: ParameterSpec,
        history: Optional[ExperimentHistory] = None,
    ) -> List[Configuration]:
        """
        Produce exactly population_size configurations.

        Args:
            base_spec: Allowed values per parameter
            history: Rated history to evolve from (default: loaded from store)

        Returns:
            Elites first (highest rated first), then offspring
        """
        if history is None:
            history = self.store.load()
        size = self.config.population_size

        if not history.combinations:
            logger.info("No rated history; sampling %d random configurations", size)
            return [random_configuration(base_spec, self.rng) for _ in range(size)]

        elites = elitism_selection(history, self.config.elite_count)
        population = [dict(e) for e in elites]
        while len(population) < size:
            population.append(self._next_child(elites, base_spec))

        population = fit_population_size(population, size, base_spec, self.rng)
        logger.info(
            "Evolved population of %d from %d elites (diversity %.2f)",
            len(population), len(elites), diversity(population) or 0.0,
        )
        return population

    def optimal_configuration(
        self,
        parameter_types: Optional[Sequence[str]] = None,
        history: Optional[ExperimentHistory] = None,
    ) -> Configuration:
        """
        Highest-rated value per parameter type.

        Types with no ratings are omitted. With parameter_types None, every
        type present in the history is used.
        """
        if history is None:
            history = self.store.load()
        if parameter_types is None:
            parameter_types = history.parameter_types()

        optimal = {}
        for parameter_type in parameter_types:
            top = history.top_parameters(parameter_type, limit=1)
            if top:
                optimal[parameter_type] = top[0].parameter_value
        return optimal


# =============================================================================
# Convenience API
# =============================================================================

def evolve_configurations(
    base_spec: ParameterSpec,
    config: Optional[EvolutionConfig] = None,
    store=None,
    rng: Optional[random.Random] = None,
    **overrides,
) -> List[Configuration]:
    """
    Evolve one population from the persisted ratings.

    Keyword overrides replace fields of config, e.g.
    evolve_configurations(spec, population_size=5).
    """
    config = config or EvolutionConfig()
    if overrides:
        config = replace(config, **overrides)
    return EvolutionEngine(store, config, rng).evolve(base_spec)


def generate_optimal_config(parameter_types: Optional[Sequence[str]] = None, store=None) -> Configuration:
    """Pick the highest-rated value for each requested parameter type."""
    return EvolutionEngine(store).optimal_configuration(parameter_types)


def has_converged(
    best_ratings: Sequence[Optional[float]],
    patience: Optional[int] = 3,
    threshold: float = 10.0,
) -> bool:
    """
    Check whether the best rating has stopped moving.

    Args:
        best_ratings: Best combination rating after each generation (None
            where nothing was rated)
        patience: Consecutive generation-to-generation changes that must
            all stay below threshold
        threshold: Largest change in rating points still counted as stable

    Returns:
        True if the last `patience` changes are all below threshold
    """
    if patience is None or len(best_ratings) <= patience:
        return False
    recent = best_ratings[-(patience + 1):]
    if any(rating is None for rating in recent):
        return False
    return all(abs(b - a) < threshold for a, b in zip(recent, recent[1:]))


@dataclass
class EvolutionRun:
    """Outcome of run_evolution_cycles()."""
    generations: List[ExperimentResult] = field(default_factory=list)
    best_ratings: List[Optional[float]] = field(default_factory=list)
    converged: bool = False
    average_rating: Optional[float] = None
    best_configuration: Optional[Configuration] = None

    @property
    def generations_run(self) -> int:
        return len(self.generations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generations_run': self.generations_run,
            'converged': self.converged,
            'average_rating': self.average_rating,
            'best_ratings': list(self.best_ratings),
            'best_configuration': self.best_configuration,
            'generations': [g.to_dict() for g in self.generations],
        }


def _best_rating(history: ExperimentHistory) -> Optional[float]:
    top = history.top_combinations(limit=1)
    return top[0].rating.rating if top else None


def _average_rating(history: ExperimentHistory, population: Sequence[Configuration]) -> Optional[float]:
    ratings = []
    for configuration in population:
        rated = history.find_combination(configuration)
        if rated is not None:
            ratings.append(rated.rating.rating)
    if not ratings:
        return None
    return float(np.mean(ratings))


async def run_evolution_cycles(
    base_spec: ParameterSpec,
    fn: ScoredFunction,
    criteria: EvaluationCriteria,
    generations: int = 1,
    store=None,
    config: Optional[EvolutionConfig] = None,
    rng: Optional[random.Random] = None,
    description: str = 'evolution',
) -> EvolutionRun:
    """
    Alternate evolution and evaluation for up to `generations` generations.

    Each generation evolves a population from the ledger, runs fn over
    exactly that population, evaluates it pairwise, and records the
    outcomes so the next generation sees the updated ratings. The loop
    stops early once the best combination rating has converged (see
    EvolutionConfig.patience).

    Returns:
        EvolutionRun with one ExperimentResult per generation run
    """
    validate_spec(base_spec)
    check_criteria(criteria)
    if generations < 0:
        raise ValueError(f"generations must be >= 0, got {generations}")

    engine = EvolutionEngine(store, config, rng)
    ledger = RatingLedger(engine.store)
    run = EvolutionRun()

    history = engine.store.load()
    for generation in range(generations):
        population = engine.evolve(base_spec, history)
        result = await run_population(
            f"{description} (generation {generation + 1}/{generations})",
            population,
            fn,
            criteria=criteria,
            ledger=ledger,
        )
        run.generations.append(result)

        history = engine.store.load()
        run.best_ratings.append(_best_rating(history))
        best = result.summary.top_performers[0].configuration if result.summary.top_performers else None
        logger.info(
            "Generation %d/%d best: %s (rating %s)",
            generation + 1, generations, best, run.best_ratings[-1],
        )

        if has_converged(run.best_ratings, engine.config.patience, engine.config.convergence_threshold):
            run.converged = True
            logger.info("Converged after %d generations", generation + 1)
            break

    if run.generations:
        run.average_rating = _average_rating(history, run.generations[-1].configurations)
    top = history.top_combinations(limit=1)
    if top:
        run.best_configuration = dict(top[0].combination)
    return run
