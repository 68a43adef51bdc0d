#!/usr/bin/env python3
"""
Quick Start - Minimal example to get started with config-arena.

Runs a fake text generator over every combination of model and
temperature, ranks the outputs by length, and prints the ratings.
"""

import asyncio
import random
import sys
import os
import tempfile
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config_arena import HistoryStore, NumericCriteria, generate_optimal_config, run_experiment
from config_arena.analysis import generate_configuration_report

VERBOSITY = {'gpt-4': 40, 'gpt-3.5': 25, 'claude-3': 35}


async def fake_generate(config):
    """Stand-in for a model call: longer text for verbose models and hot temperatures."""
    await asyncio.sleep(random.random() / 20)
    if config['model'] == 'claude-3' and config['temperature'] > 0.9:
        raise RuntimeError('overloaded')
    words = int(VERBOSITY[config['model']] * (0.5 + config['temperature']))
    return 'lorem ' * words


print("config-arena - Quick Start")
print("=" * 40)

store = HistoryStore(tempfile.mkdtemp(prefix='config-arena-'))
spec = {'model': ['gpt-4', 'gpt-3.5', 'claude-3'], 'temperature': [0.2, 0.7, 1.0]}

result = run_experiment(
    'quick start', spec, fake_generate,
    criteria=NumericCriteria(metric='length'), store=store,
)

print(f"\nRan {len(result.results)} configurations ({len(result.failures)} failed)")
print(f"Comparisons: {result.summary.total_comparisons}")
print(f"Average confidence: {result.summary.average_confidence:.2f}")
print("\nTop performers:")
for ranked in result.summary.top_performers:
    print(f"  #{ranked.rank} {ranked.configuration} (score {ranked.score})")

print(f"\nOptimal: {generate_optimal_config(['model', 'temperature'], store=store)}")
print()
print(generate_configuration_report(store.load()))
print(f"Ledger written to {store.path}")
