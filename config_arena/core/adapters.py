"""
Adapters that turn other calling conventions into a scored function.

The runner only knows one call form: an async callable taking a
configuration. These helpers wrap prompt templates and blocking callables
into that form.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Dict

from .runner import ScoredFunction


def template_function(
    template: str,
    call: Callable[[str, Dict[str, Any]], Awaitable[Any]],
) -> ScoredFunction:
    """
    Build a scored function from a str.format template.

    Each configuration is rendered into the template and the prompt is
    passed to call(prompt, configuration). A placeholder missing from the
    configuration raises KeyError, which the runner records as a failure
    of that configuration.

    Example:
        fn = template_function('Summarize in a {tone} tone: {text}', complete)
    """
    async def scored(configuration: Dict[str, Any]) -> Any:
        prompt = template.format(**configuration)
        return await call(prompt, configuration)

    return scored


def from_sync(fn: Callable[[Dict[str, Any]], Any]) -> ScoredFunction:
    """Run a blocking callable in the default executor."""
    @functools.wraps(fn)
    async def scored(configuration: Dict[str, Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, configuration)

    return scored
