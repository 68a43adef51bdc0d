"""
Elo rating model.

Ratings start at DEFAULT_RATING and move by at most K_FACTOR per match:

    expected_a = 1 / (1 + 10 ** ((rating_b - rating_a) / 400))
    rating_a'  = rating_a + K * (score_a - expected_a)

where score is 1 for a win, 0 for a loss, and 0.5 for a draw.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Tuple


# Default rating for a newly observed parameter value or configuration
DEFAULT_RATING = 1200.0

# Maximum rating swing per match
K_FACTOR = 32.0

WIN_SCORE = 1.0
DRAW_SCORE = 0.5
LOSS_SCORE = 0.0


@dataclass
class EloRating:
    """
    Rating plus cumulative match counters.

    Instances are created lazily on first appearance and then mutated in
    place by every later outcome.
    """
    rating: float = DEFAULT_RATING
    matches: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def win_rate(self) -> float:
        """Fraction of matches won, counting draws as half (0.0 if unplayed)."""
        if self.matches == 0:
            return 0.0
        return (self.wins + 0.5 * self.draws) / self.matches

    def record(self, score: float, expected: float, k_factor: float = K_FACTOR) -> float:
        """
        Apply one match result and return the rating delta.

        Args:
            score: Actual score (WIN_SCORE, DRAW_SCORE or LOSS_SCORE)
            expected: Expected score computed before either side moved
            k_factor: Maximum swing
        """
        delta = k_factor * (score - expected)
        self.rating += delta
        self.matches += 1
        if score == WIN_SCORE:
            self.wins += 1
        elif score == LOSS_SCORE:
            self.losses += 1
        else:
            self.draws += 1
        return delta

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EloRating':
        return cls(
            rating=float(data.get('rating', DEFAULT_RATING)),
            matches=int(data.get('matches', 0)),
            wins=int(data.get('wins', 0)),
            losses=int(data.get('losses', 0)),
            draws=int(data.get('draws', 0)),
        )


def expected_score(rating_a: float, rating_b: float) -> float:
    """Expected score of a player rated rating_a against one rated rating_b."""
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400.0))


def update_ratings(
    winner: EloRating,
    loser: EloRating,
    is_draw: bool = False,
    k_factor: float = K_FACTOR,
) -> Tuple[float, float]:
    """
    Update two ratings in place for a single match.

    Both expectations are taken from the ratings before the match, so the
    update is symmetric: on equal ratings the two deltas have equal size.

    Args:
        winner: Rating of the winning side (first side on a draw)
        loser: Rating of the losing side (second side on a draw)
        is_draw: Whether the match was drawn
        k_factor: Maximum swing

    Returns:
        (winner_delta, loser_delta)
    """
    expected_winner = expected_score(winner.rating, loser.rating)
    expected_loser = 1.0 - expected_winner

    if is_draw:
        winner_score, loser_score = DRAW_SCORE, DRAW_SCORE
    else:
        winner_score, loser_score = WIN_SCORE, LOSS_SCORE

    winner_delta = winner.record(winner_score, expected_winner, k_factor)
    loser_delta = loser.record(loser_score, expected_loser, k_factor)
    return winner_delta, loser_delta
