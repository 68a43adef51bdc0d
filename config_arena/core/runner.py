"""
Concurrent execution of a scored function over configurations.

All invocations of one batch are launched together and awaited collectively.
A failure in one configuration is recorded on its own result and never
cancels or affects the others.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


ScoredFunction = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass
class ExecutionResult:
    """
    Outcome of running the scored function on one configuration.

    Exactly one of value/error is meaningful: error is set only when the
    invocation raised.
    """
    configuration: Dict[str, Any]
    value: Any = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        d = {'configuration': self.configuration, 'value': self.value}
        if self.error is not None:
            d['error'] = self.error
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExecutionResult':
        return cls(
            configuration=dict(data['configuration']),
            value=data.get('value'),
            error=data.get('error'),
        )

    def __repr__(self) -> str:
        if self.failed:
            return f"ExecutionResult({self.configuration}, FAILED: {self.error})"
        return f"ExecutionResult({self.configuration}, value={self.value!r})"


def describe_error(exc: BaseException) -> str:
    """Failure message for a captured exception."""
    message = str(exc)
    return message if message else type(exc).__name__


async def _invoke(fn: ScoredFunction, configuration: Dict[str, Any]) -> ExecutionResult:
    try:
        value = await fn(dict(configuration))
    except Exception as e:
        logger.warning("Configuration %s failed: %s", configuration, describe_error(e))
        return ExecutionResult(configuration=configuration, error=describe_error(e))
    return ExecutionResult(configuration=configuration, value=value)


async def run_configurations(
    configurations: Sequence[Dict[str, Any]],
    fn: ScoredFunction,
) -> List[ExecutionResult]:
    """
    Invoke fn once per configuration, all concurrently.

    Args:
        configurations: Configurations to run
        fn: Async callable taking one configuration

    Returns:
        One ExecutionResult per configuration, in input order
    """
    if not configurations:
        return []

    settled = await asyncio.gather(
        *(_invoke(fn, configuration) for configuration in configurations),
        return_exceptions=True,
    )

    # _invoke only lets BaseExceptions such as CancelledError escape
    results = []
    for configuration, outcome in zip(configurations, settled):
        if isinstance(outcome, BaseException):
            outcome = ExecutionResult(configuration=configuration, error=describe_error(outcome))
        results.append(outcome)

    failed = sum(1 for r in results if r.failed)
    logger.info("Ran %d configurations (%d failed)", len(results), failed)
    return results
