"""
Tests for concurrent execution and the scored-function adapters.

Run with: python -m pytest tests/test_runner.py -v
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config_arena.core.runner import ExecutionResult, describe_error, run_configurations
from config_arena.core.adapters import from_sync, template_function


async def echo(config):
    return f"{config['model']}@{config['temperature']}"


class TestExecutionResult:
    """Tests for ExecutionResult."""

    def test_success(self):
        result = ExecutionResult({'a': 1}, value='ok')
        assert not result.failed
        assert result.to_dict() == {'configuration': {'a': 1}, 'value': 'ok'}

    def test_failure(self):
        result = ExecutionResult({'a': 1}, error='boom')
        assert result.failed
        assert result.to_dict()['error'] == 'boom'

    def test_serialization(self):
        result = ExecutionResult({'a': 1}, error='boom')
        restored = ExecutionResult.from_dict(result.to_dict())
        assert restored.configuration == {'a': 1}
        assert restored.error == 'boom'
        assert restored.value is None

    def test_describe_error_falls_back_to_class_name(self):
        assert describe_error(RuntimeError('bad input')) == 'bad input'
        assert describe_error(KeyError()) == 'KeyError'


class TestRunConfigurations:
    """Tests for run_configurations()."""

    def test_results_index_aligned(self):
        configs = [
            {'model': 'gpt-4', 'temperature': 0.3},
            {'model': 'claude-3', 'temperature': 0.7},
        ]
        results = asyncio.run(run_configurations(configs, echo))

        assert [r.configuration for r in results] == configs
        assert [r.value for r in results] == ['gpt-4@0.3', 'claude-3@0.7']

    def test_failures_are_isolated(self):
        """A raising configuration fails alone; the rest still produce values."""
        async def flaky(config):
            if config['n'] % 2:
                raise ValueError(f"odd {config['n']}")
            return config['n'] * 10

        configs = [{'n': n} for n in range(6)]
        results = asyncio.run(run_configurations(configs, flaky))

        assert len(results) == 6
        for n, result in enumerate(results):
            assert result.configuration == {'n': n}
            if n % 2:
                assert result.failed
                assert result.error == f"odd {n}"
                assert result.value is None
            else:
                assert not result.failed
                assert result.value == n * 10

    def test_all_failing(self):
        async def broken(config):
            raise RuntimeError('down')

        results = asyncio.run(run_configurations([{'n': 1}, {'n': 2}], broken))
        assert len(results) == 2
        assert all(r.failed for r in results)

    def test_runs_concurrently(self):
        """All invocations are in flight before any of them completes."""
        started = []
        total = 4

        async def scored(config):
            started.append(config['n'])
            while len(started) < total:
                await asyncio.sleep(0)
            return config['n']

        async def run():
            return await asyncio.wait_for(
                run_configurations([{'n': n} for n in range(total)], scored),
                timeout=5,
            )

        results = asyncio.run(run())
        assert [r.value for r in results] == list(range(total))

    def test_function_cannot_mutate_configuration(self):
        async def mutating(config):
            config['model'] = 'changed'
            return 1

        configs = [{'model': 'gpt-4'}]
        results = asyncio.run(run_configurations(configs, mutating))
        assert results[0].configuration == {'model': 'gpt-4'}

    def test_empty(self):
        assert asyncio.run(run_configurations([], echo)) == []


class TestAdapters:
    """Tests for template_function() and from_sync()."""

    def test_template_function(self):
        seen = []

        async def call(prompt, config):
            seen.append((prompt, config))
            return prompt.upper()

        fn = template_function('Write a {tone} haiku', call)
        results = asyncio.run(run_configurations([{'tone': 'calm'}], fn))

        assert results[0].value == 'WRITE A CALM HAIKU'
        assert seen == [('Write a calm haiku', {'tone': 'calm'})]

    def test_template_missing_placeholder_fails_configuration(self):
        async def call(prompt, config):
            return prompt

        fn = template_function('{tone} and {length}', call)
        results = asyncio.run(run_configurations([{'tone': 'calm'}], fn))
        assert results[0].failed
        assert 'length' in results[0].error

    def test_from_sync(self):
        def blocking(config):
            return config['a'] + config['b']

        fn = from_sync(blocking)
        results = asyncio.run(run_configurations([{'a': 1, 'b': 2}], fn))
        assert results[0].value == 3
