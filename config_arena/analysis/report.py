"""
Reporting and export over the rating ledger.

Renders ranked parameter and combination tables as Markdown, exports
ratings as JSON or CSV, and writes chosen configurations to JSON, YAML or
env files, with optional schema checks and backups on deployment.
"""

import csv
import io
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

import numpy as np
import yaml

from ..errors import ConfigurationValidationError
from ..evolution.engine import EvolutionEngine
from ..rating.ledger import ExperimentHistory, canonical_json

logger = logging.getLogger(__name__)

RATING_COLUMNS = ['type', 'value', 'rating', 'matches', 'wins', 'losses', 'draws']


def format_value(value: Any) -> str:
    """Human-readable cell text: strings as-is, everything else as JSON."""
    if isinstance(value, str):
        return value
    return canonical_json(value)


# =============================================================================
# Statistics
# =============================================================================

def parameter_summary(history: ExperimentHistory) -> Dict[str, Dict[str, Any]]:
    """
    Rating statistics per parameter type.

    Returns:
        Dict mapping parameter type to count, mean, std, min, max, spread and
        the best value
    """
    summary = {}
    for parameter_type in history.parameter_types():
        rows = history.top_parameters(parameter_type, limit=None)
        ratings = np.array([row.rating.rating for row in rows])
        summary[parameter_type] = {
            'count': len(rows),
            'mean': float(np.mean(ratings)),
            'std': float(np.std(ratings)),
            'min': float(np.min(ratings)),
            'max': float(np.max(ratings)),
            'spread': float(np.max(ratings) - np.min(ratings)),
            'best': rows[0].parameter_value,
        }
    return summary


# =============================================================================
# Ratings export
# =============================================================================

def rating_rows(history: ExperimentHistory) -> List[Dict[str, Any]]:
    """Flat parameter rating rows, grouped by type and best first."""
    rows = []
    for parameter_type in history.parameter_types():
        for row in history.top_parameters(parameter_type, limit=None):
            rows.append({
                'type': parameter_type,
                'value': row.parameter_value,
                'rating': row.rating.rating,
                'matches': row.rating.matches,
                'wins': row.rating.wins,
                'losses': row.rating.losses,
                'draws': row.rating.draws,
            })
    return rows


def export_ratings(history: ExperimentHistory, fmt: str = 'json') -> str:
    """
    Serialize the ledger's ratings.

    Args:
        history: Ledger contents
        fmt: 'json' (the whole history document) or 'csv' (parameter rows)

    Raises:
        ValueError: for any other format
    """
    if fmt == 'json':
        return json.dumps(history.to_dict(), indent=2, default=str)

    if fmt == 'csv':
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=RATING_COLUMNS, lineterminator='\n')
        writer.writeheader()
        for row in rating_rows(history):
            row['value'] = format_value(row['value'])
            writer.writerow(row)
        return buf.getvalue()

    raise ValueError(f"Unsupported export format: {fmt}")


# =============================================================================
# Configuration export
# =============================================================================

def _flatten(config: Mapping[str, Any], prefix: str = '') -> Dict[str, Any]:
    flat = {}
    for key, value in config.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, name))
        else:
            flat[name] = value
    return flat


def _env_name(key: str) -> str:
    return ''.join(c if c.isalnum() else '_' for c in key).upper()


def render_env(config: Mapping[str, Any]) -> str:
    """KEY=value lines; values are JSON, nested keys joined with '_'."""
    lines = [
        f"{_env_name(key)}={json.dumps(value, default=str)}"
        for key, value in _flatten(config).items()
    ]
    return '\n'.join(lines) + '\n' if lines else ''


def export_configuration(
    config: Mapping[str, Any],
    path: Union[str, Path],
    fmt: str = 'json',
    metadata: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Write a configuration to disk.

    Args:
        config: Configuration to export
        path: Output file
        fmt: 'json', 'yaml' or 'env'
        metadata: Extra block stored under '_metadata' (json and yaml)

    Returns:
        The written path
    """
    path = Path(path)
    document = dict(config)
    if metadata:
        document['_metadata'] = metadata

    if fmt == 'json':
        text = json.dumps(document, indent=2, default=str)
    elif fmt == 'yaml':
        # Normalize to plain JSON types so safe_dump accepts tuples and dates
        plain = json.loads(json.dumps(document, default=str))
        text = yaml.safe_dump(plain, default_flow_style=False, sort_keys=False)
    elif fmt == 'env':
        text = render_env(config)
    else:
        raise ValueError(f"Unsupported export format: {fmt}")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


SchemaType = Union[Type, Tuple[Type, ...]]


def _is_instance(value: Any, expected: Type) -> bool:
    # True/False are ints to isinstance
    if isinstance(value, bool) and expected is int:
        return False
    return isinstance(value, expected)


def validate_configuration(config: Mapping[str, Any], schema: Mapping[str, SchemaType]) -> None:
    """
    Check required keys and their types.

    Args:
        config: Configuration to check
        schema: Required key -> type (or tuple of types) accepted by isinstance.
            bool values do not satisfy int.

    Raises:
        ConfigurationValidationError: On a missing key or a wrong type
    """
    for key, expected in schema.items():
        if key not in config:
            raise ConfigurationValidationError(f"Missing required configuration key: {key}")
        value = config[key]
        types = expected if isinstance(expected, tuple) else (expected,)
        if not any(_is_instance(value, t) for t in types):
            names = ' or '.join(t.__name__ for t in types)
            raise ConfigurationValidationError(
                f"Invalid type for {key}: expected {names}, got {type(value).__name__}"
            )


def deploy_configuration(
    config: Mapping[str, Any],
    path: Union[str, Path],
    fmt: str = 'json',
    backup_path: Optional[Union[str, Path]] = None,
    schema: Optional[Mapping[str, SchemaType]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    before_deploy: Optional[Callable[[], None]] = None,
    after_deploy: Optional[Callable[[], None]] = None,
) -> Path:
    """
    Validate, back up and write a configuration.

    Args:
        config: Configuration to deploy
        path: Target file
        fmt: Export format (see export_configuration)
        backup_path: Where to copy the existing target first; '{timestamp}'
            is replaced with the current time. No backup when the target
            does not exist yet.
        schema: Required key -> type checks (see validate_configuration)
        metadata: Passed through to export_configuration
        before_deploy: Called before anything is checked or written
        after_deploy: Called after the new file is written

    Returns:
        The written path

    Example:
        deploy_configuration(
            {'model': 'gpt-4', 'temperature': 0.7},
            'deploy/config.yaml', fmt='yaml',
            backup_path='deploy/backups/config-{timestamp}.yaml',
            schema={'model': str, 'temperature': (int, float)},
        )
    """
    path = Path(path)
    if before_deploy is not None:
        before_deploy()

    if schema:
        validate_configuration(config, schema)

    if backup_path is not None and path.exists():
        timestamp = datetime.now().strftime('%Y%m%dT%H%M%S%f')
        backup = Path(str(backup_path).replace('{timestamp}', timestamp))
        backup.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, backup)
        logger.info("Backed up %s to %s", path, backup)

    export_configuration(config, path, fmt=fmt, metadata=metadata)
    logger.info("Deployed configuration to %s", path)

    if after_deploy is not None:
        after_deploy()
    return path


def export_optimal_configuration(
    parameter_types: Optional[Sequence[str]],
    path: Union[str, Path],
    store=None,
) -> Dict[str, Any]:
    """
    Write the highest-rated value per parameter type with provenance.

    Returns:
        The document written: {'config': ..., 'metadata': ...}
    """
    engine = EvolutionEngine(store)
    history = engine.store.load()
    config = engine.optimal_configuration(parameter_types, history=history)

    document = {
        'config': config,
        'metadata': {
            'generated_at': datetime.now().isoformat(),
            'total_experiments': history.total_experiments,
            'parameter_types': list(parameter_types) if parameter_types is not None
            else history.parameter_types(),
        },
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, default=str), encoding='utf-8')
    return document


# =============================================================================
# Markdown report
# =============================================================================

def _table(headers: List[str], rows: List[List[str]]) -> List[str]:
    lines = [
        '| ' + ' | '.join(headers) + ' |',
        '|' + '|'.join('---' for _ in headers) + '|',
    ]
    lines.extend('| ' + ' | '.join(row) + ' |' for row in rows)
    return lines


def generate_configuration_report(
    history: ExperimentHistory,
    top_n: int = 10,
    recent: int = 5,
) -> str:
    """
    Markdown report of parameter rankings, top combinations and recent runs.
    """
    lines = [
        '# Configuration Report',
        '',
        f"Generated: {datetime.now().isoformat()}",
        f"Total experiments: {history.total_experiments}",
        f"Ledger revision: {history.revision}",
        '',
        '## Parameter Rankings',
        '',
    ]

    parameter_types = history.parameter_types()
    if not parameter_types:
        lines.extend(['No parameter ratings yet.', ''])
    for parameter_type in parameter_types:
        rows = [
            [
                str(rank),
                format_value(row.parameter_value),
                f"{row.rating.rating:.1f}",
                str(row.rating.matches),
                f"{row.rating.win_rate:.0%}",
            ]
            for rank, row in enumerate(history.top_parameters(parameter_type, top_n), start=1)
        ]
        lines.extend([f"### {parameter_type}", ''])
        lines.extend(_table(['Rank', 'Value', 'Rating', 'Matches', 'Win rate'], rows))
        lines.append('')

    lines.extend(['## Top Combinations', ''])
    combinations = history.top_combinations(top_n)
    if combinations:
        rows = [
            [
                str(rank),
                ', '.join(f"{k}={format_value(v)}" for k, v in row.combination.items()),
                f"{row.rating.rating:.1f}",
                str(row.rating.matches),
                f"{row.rating.win_rate:.0%}",
            ]
            for rank, row in enumerate(combinations, start=1)
        ]
        lines.extend(_table(['Rank', 'Configuration', 'Rating', 'Matches', 'Win rate'], rows))
    else:
        lines.append('No combination ratings yet.')
    lines.append('')

    lines.extend(['## Recent Experiments', ''])
    experiments = history.recent_experiments(recent)
    if experiments:
        for record in reversed(experiments):
            lines.append(
                f"- {record.timestamp}: {record.description} "
                f"({len(record.configurations)} configurations, {len(record.outcomes)} comparisons)"
            )
    else:
        lines.append('No experiments recorded.')
    lines.append('')

    return '\n'.join(lines)
