#!/usr/bin/env python3
"""
Evolutionary search over prompt configurations.

Alternates evolution and pairwise evaluation for several generations,
each generation seeded by the ratings recorded in the previous one.

Usage:
    python examples/run_evolution.py [options]

Options:
    --generations N     Number of generations (default: 5)
    --population N      Population size (default: 8)
    --seed N            Random seed for reproducibility
    --store DIR         Ledger directory (default: temporary directory)
"""

import argparse
import asyncio
import logging
import random
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config_arena.core.persistence import HistoryStore
from config_arena.evaluation.criteria import NumericCriteria
from config_arena.evolution.engine import EvolutionConfig, generate_optimal_config, run_evolution_cycles


BASE_SPEC = {
    'model': ['small', 'medium', 'large'],
    'temperature': [0.0, 0.3, 0.7, 1.0],
    'top_p': [0.5, 0.9, 1.0],
    'few_shot': [0, 1, 3, 5],
}


async def score(config):
    """Synthetic quality score with a known optimum: large, 0.3, 0.9, 3 shots."""
    await asyncio.sleep(0)
    quality = {'small': 0.2, 'medium': 0.5, 'large': 0.8}[config['model']]
    quality -= abs(config['temperature'] - 0.3)
    quality -= abs(config['top_p'] - 0.9)
    quality -= abs(config['few_shot'] - 3) * 0.05
    return {'quality': quality}


def parse_args():
    parser = argparse.ArgumentParser(
        description='Run evolutionary configuration search'
    )
    parser.add_argument(
        '--generations', type=int, default=5,
        help='Number of generations (default: 5)'
    )
    parser.add_argument(
        '--population', type=int, default=8,
        help='Population size (default: 8)'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--store', type=str, default=None,
        help='Ledger directory (default: temporary directory)'
    )
    return parser.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    store = HistoryStore(args.store or tempfile.mkdtemp(prefix='config-arena-'))
    rng = random.Random(args.seed) if args.seed is not None else None

    run = asyncio.run(run_evolution_cycles(
        BASE_SPEC,
        score,
        NumericCriteria(metric='quality'),
        generations=args.generations,
        store=store,
        config=EvolutionConfig(population_size=args.population),
        rng=rng,
    ))

    print("\n" + "=" * 60)
    print("   EVOLUTION COMPLETE")
    print("=" * 60)
    for generation, result in enumerate(run.generations, start=1):
        best = result.summary.top_performers[0]
        print(f"   Gen {generation}: {best.configuration}")
    status = 'converged' if run.converged else 'generation limit reached'
    print(f"\n   Stopped after {run.generations_run} generations ({status})")
    if run.average_rating is not None:
        print(f"   Average rating of final population: {run.average_rating:.1f}")

    print(f"\n   Optimal: {generate_optimal_config(list(BASE_SPEC), store=store)}")
    print(f"   Ledger:  {store.path}")


if __name__ == '__main__':
    main()
