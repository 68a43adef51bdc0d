"""Core experiment machinery: expansion, execution, persistence."""

from .combinations import ParameterSpec, Configuration, cartesian, count_combinations, validate_spec
from .runner import ExecutionResult, ScoredFunction, run_configurations
from .persistence import HistoryStore, MemoryHistoryStore, default_store_dir
from .adapters import template_function, from_sync

__all__ = [
    'ParameterSpec',
    'Configuration',
    'cartesian',
    'count_combinations',
    'validate_spec',
    'ExecutionResult',
    'ScoredFunction',
    'run_configurations',
    'HistoryStore',
    'MemoryHistoryStore',
    'default_store_dir',
    'template_function',
    'from_sync',
]
