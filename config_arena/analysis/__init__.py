"""Reporting and export over the rating ledger."""

from .report import (
    deploy_configuration,
    export_configuration,
    export_optimal_configuration,
    export_ratings,
    generate_configuration_report,
    parameter_summary,
    render_env,
    validate_configuration,
)

__all__ = [
    'deploy_configuration',
    'export_configuration',
    'export_optimal_configuration',
    'export_ratings',
    'generate_configuration_report',
    'parameter_summary',
    'render_env',
    'validate_configuration',
]
