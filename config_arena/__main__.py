"""
Command line interface for config-arena.

Usage:
    python -m config_arena report   [--store DIR] [--output FILE]
    python -m config_arena export   [--store DIR] [--format json|csv] [--output FILE]
    python -m config_arena optimal  [--store DIR] [--types T [T ...]] [--output FILE]
    python -m config_arena evolve   --spec SPEC [--store DIR] [--population N] [--seed N]
    python -m config_arena serve    [--store DIR] [--host HOST] [--port N]

SPEC is a JSON object mapping parameter names to candidate lists, given
inline or as a path to a .json file.
"""

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from .analysis.report import (
    export_optimal_configuration,
    export_ratings,
    generate_configuration_report,
)
from .core.combinations import validate_spec
from .core.persistence import HistoryStore
from .errors import ArenaError
from .evolution.engine import EvolutionConfig, EvolutionEngine

logger = logging.getLogger('config_arena')


def load_spec(value: str) -> dict:
    """Parse a spec given inline or as a path to a JSON file."""
    path = Path(value)
    text = path.read_text(encoding='utf-8') if path.suffix == '.json' and path.exists() else value
    try:
        spec = json.loads(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid spec JSON: {e}")
    if not isinstance(spec, dict):
        raise argparse.ArgumentTypeError("Spec must be a JSON object")
    return spec


def _write_or_print(text: str, output):
    if output:
        Path(output).write_text(text, encoding='utf-8')
        logger.info("Wrote %s", output)
    else:
        sys.stdout.write(text if text.endswith('\n') else text + '\n')


def cmd_report(args, store):
    _write_or_print(generate_configuration_report(store.load(), top_n=args.top), args.output)


def cmd_export(args, store):
    _write_or_print(export_ratings(store.load(), args.format), args.output)


def cmd_optimal(args, store):
    if args.output:
        export_optimal_configuration(args.types, args.output, store)
        logger.info("Wrote %s", args.output)
        return
    config = EvolutionEngine(store).optimal_configuration(args.types)
    _write_or_print(json.dumps(config, indent=2, default=str), None)


def cmd_evolve(args, store):
    validate_spec(args.spec)
    config = EvolutionConfig(
        population_size=args.population,
        elite_count=args.elites,
        crossover_rate=args.crossover_rate,
        mutation_rate=args.mutation_rate,
    )
    rng = random.Random(args.seed) if args.seed is not None else None
    population = EvolutionEngine(store, config, rng).evolve(args.spec)
    _write_or_print(json.dumps(population, indent=2, default=str), args.output)


def cmd_serve(args, store):
    from .web.app import main as serve
    serve(store, host=args.host, port=args.port, debug=args.debug)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='config-arena',
        description='Rate, evolve and export experiment configurations'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Enable debug logging'
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--store', type=str, default=None,
        help='Ledger directory (default: $CONFIG_ARENA_DIR or .config-arena)'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('report', parents=[common], help='Markdown configuration report')
    p.add_argument('--top', type=int, default=10, help='Rows per table (default: 10)')
    p.add_argument('--output', '-o', type=str, default=None, help='Write to file instead of stdout')
    p.set_defaults(func=cmd_report)

    p = sub.add_parser('export', parents=[common], help='Export ratings')
    p.add_argument('--format', choices=['json', 'csv'], default='json', help='Export format (default: json)')
    p.add_argument('--output', '-o', type=str, default=None, help='Write to file instead of stdout')
    p.set_defaults(func=cmd_export)

    p = sub.add_parser('optimal', parents=[common], help='Highest-rated value per parameter type')
    p.add_argument('--types', nargs='+', default=None, help='Parameter types (default: all rated types)')
    p.add_argument('--output', '-o', type=str, default=None, help='Write config with metadata to file')
    p.set_defaults(func=cmd_optimal)

    p = sub.add_parser('evolve', parents=[common], help='Evolve a new population from the ledger')
    p.add_argument('--spec', type=load_spec, required=True, help='Base spec: inline JSON or .json file')
    p.add_argument('--population', type=int, default=10, help='Population size (default: 10)')
    p.add_argument('--elites', type=int, default=2, help='Elite count (default: 2)')
    p.add_argument('--crossover-rate', type=float, default=0.7, help='Crossover probability (default: 0.7)')
    p.add_argument('--mutation-rate', type=float, default=0.1, help='Per-parameter mutation probability (default: 0.1)')
    p.add_argument('--seed', type=int, default=None, help='Random seed for reproducibility')
    p.add_argument('--output', '-o', type=str, default=None, help='Write to file instead of stdout')
    p.set_defaults(func=cmd_evolve)

    p = sub.add_parser('serve', parents=[common], help='Run the configuration API')
    p.add_argument('--host', type=str, default='127.0.0.1', help='Bind address (default: 127.0.0.1)')
    p.add_argument('--port', type=int, default=5000, help='Port (default: 5000)')
    p.add_argument('--debug', action='store_true', help='Flask debug mode')
    p.set_defaults(func=cmd_serve)

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    store = HistoryStore(args.store)
    try:
        args.func(args, store)
    except (ArenaError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
