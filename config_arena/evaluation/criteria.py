"""
Evaluation strategies for pairwise comparison.

Three variants, dispatched exhaustively by the evaluator:

- NumericCriteria: compare a scalar metric extracted from each result
- CustomCriteria: caller-supplied comparison returning win/loss/draw
- JudgedCriteria: delegate to an async judge returning a Verdict
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union


class Choice(str, Enum):
    A = 'A'
    B = 'B'
    DRAW = 'DRAW'


# Accepted spellings for comparator results, from the first result's side
_CHOICE_ALIASES = {
    'a': Choice.A,
    'win': Choice.A,
    'b': Choice.B,
    'loss': Choice.B,
    'draw': Choice.DRAW,
    'tie': Choice.DRAW,
}


def parse_choice(value: Any) -> Choice:
    """Normalize 'A'/'B'/'DRAW' or 'win'/'loss'/'draw' to a Choice."""
    if isinstance(value, Choice):
        return value
    choice = _CHOICE_ALIASES.get(str(value).strip().lower())
    if choice is None:
        raise ValueError(f"Unrecognized comparison result: {value!r}")
    return choice


@dataclass(frozen=True)
class Verdict:
    """Structured verdict from a judge collaborator."""
    choice: Choice
    confidence: Optional[float] = 1.0
    reasoning: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'choice', parse_choice(self.choice))
        if self.confidence is None:
            return
        try:
            confidence = float(self.confidence)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Verdict confidence must be a number, got {self.confidence!r}") from e
        object.__setattr__(self, 'confidence', confidence)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Verdict confidence {self.confidence} out of range [0, 1]")

    @classmethod
    def from_value(cls, value: Union['Verdict', Mapping[str, Any]]) -> 'Verdict':
        """Accept a Verdict or a mapping with choice/confidence/reasoning keys."""
        if isinstance(value, Verdict):
            return value
        return cls(
            choice=value['choice'],
            confidence=value.get('confidence', 1.0),
            reasoning=value.get('reasoning', '') or '',
        )


Comparator = Callable[[Any, Any], Any]
Judge = Callable[[Any, Any, str], Awaitable[Union[Verdict, Mapping[str, Any]]]]


@dataclass(frozen=True)
class NumericCriteria:
    """
    Compare a scalar metric; larger wins unless higher_is_better is False.

    Attributes:
        metric: 'length' for len(value), a dotted path such as
            'metrics.accuracy' for nested lookup, or None to use the
            value itself
        higher_is_better: Direction of the comparison
    """
    metric: Optional[str] = None
    higher_is_better: bool = True


@dataclass(frozen=True)
class CustomCriteria:
    """
    Caller-supplied comparison.

    compare(a, b) returns 'win'/'loss'/'draw' (or 'A'/'B'/'draw') from the
    perspective of a.
    """
    compare: Comparator
    confidence: float = 0.7


@dataclass(frozen=True)
class JudgedCriteria:
    """Delegate each comparison to an async judge(a, b, prompt)."""
    judge: Judge
    prompt: str = ''


EvaluationCriteria = Union[NumericCriteria, CustomCriteria, JudgedCriteria]


@dataclass(frozen=True)
class EvaluationOutcome:
    """
    Result of comparing results[winner] with results[loser].

    For a draw, winner and loser hold the pair in index order.
    """
    winner: int
    loser: int
    is_draw: bool = False
    confidence: Optional[float] = None
    rationale: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'winner': self.winner,
            'loser': self.loser,
            'is_draw': self.is_draw,
            'confidence': self.confidence,
            'rationale': self.rationale,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvaluationOutcome':
        return cls(
            winner=int(data['winner']),
            loser=int(data['loser']),
            is_draw=bool(data.get('is_draw', False)),
            confidence=data.get('confidence'),
            rationale=data.get('rationale'),
        )
