"""
Flask Blueprint for the configuration API.

Provides read-only endpoints for:
- The current best configuration and the per-type optimal configuration
- Parameter and combination ratings
- The experiment log
- The Markdown report and rating charts
"""

from flask import Blueprint, Response, current_app, jsonify, request

from ..analysis.report import generate_configuration_report, parameter_summary
from ..evolution.engine import EvolutionEngine
from ..visualization.plots import figure_to_png, plot_parameter_ratings


config_bp = Blueprint('config', __name__, url_prefix='/api')


def get_history_store():
    """Get the history store from app config."""
    return current_app.config['HISTORY_STORE']


def _limit_arg(default=10):
    value = request.args.get('limit', default, type=int)
    return max(value, 0)


@config_bp.route('/config/current')
def current_config():
    """Highest-rated whole configuration."""
    history = get_history_store().load()
    top = history.top_combinations(1)
    if not top:
        return jsonify({'error': 'No rated configurations yet'}), 404
    return jsonify({
        'config': top[0].combination,
        'rating': top[0].rating.to_dict(),
    })


@config_bp.route('/config/optimal')
def optimal_config():
    """
    Highest-rated value per parameter type.

    Query params:
        types: Comma-separated parameter types (default: all rated types)
    """
    types_arg = request.args.get('types')
    parameter_types = [t for t in types_arg.split(',') if t] if types_arg else None

    engine = EvolutionEngine(get_history_store())
    history = engine.store.load()
    return jsonify({
        'config': engine.optimal_configuration(parameter_types, history=history),
        'total_experiments': history.total_experiments,
    })


@config_bp.route('/parameters')
def list_parameters():
    """Parameter types with rating statistics."""
    history = get_history_store().load()
    return jsonify({
        'types': history.parameter_types(),
        'summary': parameter_summary(history),
    })


@config_bp.route('/parameters/<parameter_type>')
def parameter_ratings(parameter_type):
    """Ratings of one parameter type, best first."""
    history = get_history_store().load()
    rows = history.top_parameters(parameter_type, _limit_arg())
    if not rows:
        return jsonify({'error': f'Parameter {parameter_type} not found'}), 404
    return jsonify({
        'type': parameter_type,
        'ratings': [row.to_dict() for row in rows],
    })


@config_bp.route('/combinations')
def top_combinations():
    """Top-rated combinations."""
    history = get_history_store().load()
    return jsonify({
        'combinations': [row.to_dict() for row in history.top_combinations(_limit_arg())],
    })


@config_bp.route('/experiments')
def experiments():
    """Most recent experiment records, newest last."""
    history = get_history_store().load()
    records = history.recent_experiments(_limit_arg())
    return jsonify({
        'total': history.total_experiments,
        'experiments': [r.to_dict() for r in records],
    })


@config_bp.route('/report')
def report():
    """Markdown configuration report."""
    history = get_history_store().load()
    return Response(generate_configuration_report(history), mimetype='text/markdown')


@config_bp.route('/charts/<parameter_type>.png')
def parameter_chart(parameter_type):
    """PNG bar chart of one parameter type's ratings."""
    history = get_history_store().load()
    if not history.top_parameters(parameter_type, 1):
        return jsonify({'error': f'Parameter {parameter_type} not found'}), 404
    fig = plot_parameter_ratings(history, parameter_type, _limit_arg())
    return Response(figure_to_png(fig), mimetype='image/png')
