"""
Tests for reporting, export and rating charts.

Run with: python -m pytest tests/test_report.py -v
"""

import csv
import io
import json
import pytest
import sys
import yaml
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config_arena.analysis.report import (
    deploy_configuration,
    export_configuration,
    export_optimal_configuration,
    export_ratings,
    generate_configuration_report,
    parameter_summary,
    render_env,
    validate_configuration,
)
from config_arena.core.persistence import MemoryHistoryStore
from config_arena.core.runner import ExecutionResult
from config_arena.errors import ConfigurationValidationError
from config_arena.evaluation.criteria import EvaluationOutcome
from config_arena.rating.ledger import ExperimentHistory, RatingLedger
from config_arena.visualization.plots import (
    figure_to_base64,
    figure_to_png,
    plot_combination_ratings,
    plot_parameter_ratings,
)


@pytest.fixture
def store():
    """Ledger with one recorded experiment: gpt-4 beat gpt-3.5."""
    store = MemoryHistoryStore()
    results = [
        ExecutionResult({'model': 'gpt-4', 'temperature': 0.7}, value='long answer'),
        ExecutionResult({'model': 'gpt-3.5', 'temperature': 0.3}, value='short'),
    ]
    RatingLedger(store).record_experiment('model sweep', results, [EvaluationOutcome(0, 1, confidence=0.9)])
    return store


class TestExportRatings:
    """Tests for export_ratings()."""

    def test_json(self, store):
        data = json.loads(export_ratings(store.load(), 'json'))
        assert data['revision'] == 1
        assert len(data['experiments']) == 1

    def test_csv(self, store):
        rows = list(csv.DictReader(io.StringIO(export_ratings(store.load(), 'csv'))))
        assert len(rows) == 4
        assert rows[0]['type'] == 'model'
        assert rows[0]['value'] == 'gpt-4'
        assert float(rows[0]['rating']) > 1200
        assert rows[0]['wins'] == '1'
        assert {r['value'] for r in rows if r['type'] == 'temperature'} == {'0.7', '0.3'}

    def test_unknown_format(self, store):
        with pytest.raises(ValueError):
            export_ratings(store.load(), 'yaml')


class TestExportConfiguration:
    """Tests for configuration export."""

    def test_json_with_metadata(self, tmp_path):
        path = export_configuration(
            {'model': 'gpt-4'}, tmp_path / 'out' / 'config.json', metadata={'source': 'test'},
        )
        data = json.loads(path.read_text())
        assert data == {'model': 'gpt-4', '_metadata': {'source': 'test'}}

    def test_env(self, tmp_path):
        path = export_configuration(
            {'model': 'gpt-4', 'temperature': 0.7, 'retry': {'max-attempts': 3}},
            tmp_path / '.env', fmt='env',
        )
        assert path.read_text().splitlines() == [
            'MODEL="gpt-4"',
            'TEMPERATURE=0.7',
            'RETRY_MAX_ATTEMPTS=3',
        ]

    def test_yaml_with_metadata(self, tmp_path):
        path = export_configuration(
            {'model': 'gpt-4', 'temperature': 0.7, 'stop': ('###',), 'retry': {'attempts': 3}},
            tmp_path / 'config.yaml', fmt='yaml', metadata={'source': 'test'},
        )
        text = path.read_text()
        assert text.startswith('model: gpt-4\n')
        assert yaml.safe_load(text) == {
            'model': 'gpt-4',
            'temperature': 0.7,
            'stop': ['###'],
            'retry': {'attempts': 3},
            '_metadata': {'source': 'test'},
        }

    def test_render_env_empty(self):
        assert render_env({}) == ''

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            export_configuration({'model': 'gpt-4'}, tmp_path / 'x.ts', fmt='ts')

    def test_export_optimal_configuration(self, store, tmp_path):
        path = tmp_path / 'optimal.json'
        document = export_optimal_configuration(['model', 'temperature'], path, store=store)

        assert document['config'] == {'model': 'gpt-4', 'temperature': 0.7}
        written = json.loads(path.read_text())
        assert written['config'] == document['config']
        assert written['metadata']['total_experiments'] == 1
        assert written['metadata']['parameter_types'] == ['model', 'temperature']


class TestDeployConfiguration:
    """Tests for validated, backed-up deployment."""

    def test_first_deploy_skips_backup(self, tmp_path):
        target = tmp_path / 'deploy' / 'config.json'
        backups = tmp_path / 'backups'
        deploy_configuration({'model': 'gpt-4'}, target, backup_path=backups / 'config-{timestamp}.json')

        assert json.loads(target.read_text()) == {'model': 'gpt-4'}
        assert not backups.exists()

    def test_backup_keeps_previous_file(self, tmp_path):
        target = tmp_path / 'config.yaml'
        deploy_configuration({'model': 'gpt-3.5'}, target, fmt='yaml')
        deploy_configuration(
            {'model': 'gpt-4'}, target, fmt='yaml',
            backup_path=tmp_path / 'backups' / 'config-{timestamp}.yaml',
        )

        backups = list((tmp_path / 'backups').iterdir())
        assert len(backups) == 1
        assert '{timestamp}' not in backups[0].name
        assert yaml.safe_load(backups[0].read_text()) == {'model': 'gpt-3.5'}
        assert yaml.safe_load(target.read_text()) == {'model': 'gpt-4'}

    def test_schema_rejects_missing_key(self, tmp_path):
        target = tmp_path / 'config.json'
        with pytest.raises(ConfigurationValidationError, match='Missing required configuration key: temperature'):
            deploy_configuration({'model': 'gpt-4'}, target, schema={'model': str, 'temperature': float})
        assert not target.exists()

    def test_schema_rejects_wrong_type(self, tmp_path):
        target = tmp_path / 'config.json'
        target.write_text('{"model": "gpt-3.5"}')
        with pytest.raises(ConfigurationValidationError, match='expected float, got str'):
            deploy_configuration(
                {'model': 'gpt-4', 'temperature': 'hot'}, target,
                schema={'model': str, 'temperature': float},
            )
        assert json.loads(target.read_text()) == {'model': 'gpt-3.5'}

    def test_validate_configuration_types(self):
        validate_configuration({'temperature': 1, 'stream': True}, {'temperature': (int, float), 'stream': bool})
        with pytest.raises(ConfigurationValidationError):
            validate_configuration({'max_tokens': True}, {'max_tokens': int})

    def test_hooks_run_around_write(self, tmp_path):
        target = tmp_path / 'config.json'
        calls = []
        deploy_configuration(
            {'model': 'gpt-4'}, target,
            before_deploy=lambda: calls.append(('before', target.exists())),
            after_deploy=lambda: calls.append(('after', target.exists())),
        )
        assert calls == [('before', False), ('after', True)]


class TestConfigurationReport:
    """Tests for the Markdown report."""

    def test_sections(self, store):
        report = generate_configuration_report(store.load())
        assert report.startswith('# Configuration Report')
        for heading in ('## Parameter Rankings', '### model', '## Top Combinations', '## Recent Experiments'):
            assert heading in report
        assert 'model sweep' in report
        assert report.index('gpt-4') < report.index('gpt-3.5')

    def test_empty_history(self):
        report = generate_configuration_report(ExperimentHistory())
        assert 'No parameter ratings yet.' in report
        assert 'No experiments recorded.' in report

    def test_parameter_summary(self, store):
        summary = parameter_summary(store.load())
        assert set(summary) == {'model', 'temperature'}
        assert summary['model']['count'] == 2
        assert summary['model']['best'] == 'gpt-4'
        assert summary['model']['mean'] == pytest.approx(1200)
        assert summary['model']['spread'] > 0


class TestPlots:
    """Tests for rating charts."""

    def test_parameter_chart(self, store):
        fig = plot_parameter_ratings(store.load(), 'model')
        png = figure_to_png(fig)
        assert png.startswith(b'\x89PNG')

    def test_combination_chart_base64(self, store):
        fig = plot_combination_ratings(store.load())
        encoded = figure_to_base64(fig)
        assert isinstance(encoded, str)
        assert len(encoded) > 100

    def test_empty_chart(self):
        png = figure_to_png(plot_parameter_ratings(ExperimentHistory(), 'model'))
        assert png.startswith(b'\x89PNG')
