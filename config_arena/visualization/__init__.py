"""Rating charts."""

from .plots import (
    plot_parameter_ratings,
    plot_combination_ratings,
    figure_to_png,
    figure_to_base64,
)

__all__ = [
    'plot_parameter_ratings',
    'plot_combination_ratings',
    'figure_to_png',
    'figure_to_base64',
]
