"""
Combinatorial expansion of parameter specifications.

A specification maps each parameter name to its candidate values:

    {'model': ['gpt-4', 'claude-3'], 'temperature': [0.3, 0.7]}

and expands to every concrete configuration, first key as the outer loop.
"""

from typing import Any, Dict, List, Mapping, Sequence

from ..errors import SpecificationError


ParameterSpec = Mapping[str, Sequence[Any]]
Configuration = Dict[str, Any]


def cartesian(spec: ParameterSpec) -> List[Configuration]:
    """
    Expand a parameter specification into its cartesian product.

    The last parameter varies fastest. An empty specification yields an
    empty list (not a single empty configuration), and any empty candidate
    list collapses the whole product to zero configurations.

    Example:
        >>> cartesian({'a': [1, 2], 'b': ['x', 'y']})
        [{'a': 1, 'b': 'x'}, {'a': 1, 'b': 'y'}, {'a': 2, 'b': 'x'}, {'a': 2, 'b': 'y'}]
    """
    if not spec:
        return []

    combos: List[Configuration] = [{}]
    for key, values in spec.items():
        combos = [{**combo, key: value} for combo in combos for value in values]
    return combos


def count_combinations(spec: ParameterSpec) -> int:
    """Number of configurations cartesian(spec) would produce."""
    if not spec:
        return 0
    total = 1
    for values in spec.values():
        total *= len(values)
    return total


def validate_spec(spec: ParameterSpec) -> None:
    """
    Reject specifications that cannot drive an experiment.

    Raises:
        SpecificationError: if there are no parameters, or a parameter's
            candidates are not given as a list/tuple.
    """
    if not spec:
        raise SpecificationError(
            "No parameter combinations found. Provide at least one parameter list."
        )
    for key, values in spec.items():
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
            raise SpecificationError(
                f"Candidates for parameter '{key}' must be a list, "
                f"got {type(values).__name__}"
            )
