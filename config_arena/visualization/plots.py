"""
Matplotlib charts of ledger ratings.

These functions create static plots for reports and the web API.
"""

import io
import base64
from typing import Optional, Tuple

# Matplotlib imports with non-GUI backend
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from ..rating.elo import DEFAULT_RATING
from ..rating.ledger import ExperimentHistory
from ..analysis.report import format_value


def _bar_colors(ratings):
    return ['#2ecc71' if r >= DEFAULT_RATING else '#e74c3c' for r in ratings]


def plot_parameter_ratings(
    history: ExperimentHistory,
    parameter_type: str,
    limit: Optional[int] = 10,
    figsize: Tuple[int, int] = (8, 4),
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Horizontal bar chart of one parameter type's value ratings.

    Bars above the default rating are green, below are red; the dashed
    line marks the default rating.

    Returns:
        matplotlib Figure
    """
    rows = history.top_parameters(parameter_type, limit)
    labels = [format_value(row.parameter_value) for row in rows]
    ratings = [row.rating.rating for row in rows]

    fig, ax = plt.subplots(figsize=figsize)
    if rows:
        positions = range(len(rows))
        ax.barh(positions, ratings, color=_bar_colors(ratings))
        ax.set_yticks(list(positions))
        ax.set_yticklabels(labels)
        ax.invert_yaxis()
        ax.set_xlim(min(ratings + [DEFAULT_RATING]) - 50, max(ratings + [DEFAULT_RATING]) + 50)
    else:
        ax.text(0.5, 0.5, 'No ratings', ha='center', va='center', transform=ax.transAxes)

    ax.axvline(DEFAULT_RATING, color='gray', linestyle='--', linewidth=1)
    ax.set_xlabel('Elo rating')
    ax.set_title(title or f"{parameter_type} ratings")
    ax.grid(True, axis='x', alpha=0.3)

    plt.tight_layout()
    return fig


def plot_combination_ratings(
    history: ExperimentHistory,
    limit: int = 10,
    figsize: Tuple[int, int] = (10, 5),
    title: Optional[str] = None,
) -> plt.Figure:
    """Bar chart of the top-rated combinations."""
    rows = history.top_combinations(limit)
    labels = [
        '\n'.join(f"{k}={format_value(v)}" for k, v in row.combination.items())
        for row in rows
    ]
    ratings = [row.rating.rating for row in rows]

    fig, ax = plt.subplots(figsize=figsize)
    if rows:
        ax.bar(range(len(rows)), ratings, color=_bar_colors(ratings))
        ax.set_xticks(list(range(len(rows))))
        ax.set_xticklabels(labels, fontsize=7)
    else:
        ax.text(0.5, 0.5, 'No ratings', ha='center', va='center', transform=ax.transAxes)

    ax.axhline(DEFAULT_RATING, color='gray', linestyle='--', linewidth=1)
    ax.set_ylabel('Elo rating')
    ax.set_title(title or 'Top combinations')
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()
    return fig


def figure_to_png(fig: plt.Figure) -> bytes:
    """Render a figure to PNG bytes and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=100, bbox_inches='tight')
    plt.close(fig)
    return buf.getvalue()


def figure_to_base64(fig: plt.Figure) -> str:
    """Convert matplotlib figure to base64 string for web display."""
    return base64.b64encode(figure_to_png(fig)).decode('utf-8')
