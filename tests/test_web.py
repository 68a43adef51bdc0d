"""
Tests for the configuration API.

Run with: python -m pytest tests/test_web.py -v
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config_arena.core.persistence import HistoryStore, MemoryHistoryStore
from config_arena.core.runner import ExecutionResult
from config_arena.evaluation.criteria import EvaluationOutcome
from config_arena.rating.ledger import RatingLedger
from config_arena.web.app import create_app


@pytest.fixture
def store(tmp_path):
    store = HistoryStore(tmp_path)
    results = [
        ExecutionResult({'model': 'gpt-4', 'temperature': 0.7}, value='long answer'),
        ExecutionResult({'model': 'gpt-3.5', 'temperature': 0.3}, value='short'),
        ExecutionResult({'model': 'claude-3', 'temperature': 0.3}, value='medium!'),
    ]
    outcomes = [EvaluationOutcome(0, 1), EvaluationOutcome(0, 2), EvaluationOutcome(2, 1)]
    RatingLedger(store).record_experiment('sweep', results, outcomes)
    return store


@pytest.fixture
def client(store):
    app = create_app(store)
    app.config['TESTING'] = True
    return app.test_client()


class TestConfigAPI:
    """Tests for the configuration API endpoints."""

    def test_index_lists_endpoints(self, client):
        data = client.get('/').get_json()
        assert data['service'] == 'config-arena'
        assert '/api/config/current' in data['endpoints']

    def test_current_config(self, client):
        response = client.get('/api/config/current')
        assert response.status_code == 200
        assert response.get_json()['config'] == {'model': 'gpt-4', 'temperature': 0.7}

    def test_current_config_empty_ledger(self):
        client = create_app(MemoryHistoryStore()).test_client()
        response = client.get('/api/config/current')
        assert response.status_code == 404
        assert 'error' in response.get_json()

    def test_optimal_config(self, client):
        data = client.get('/api/config/optimal?types=model').get_json()
        assert data['config'] == {'model': 'gpt-4'}
        assert data['total_experiments'] == 1

        data = client.get('/api/config/optimal').get_json()
        assert set(data['config']) == {'model', 'temperature'}

    def test_parameters(self, client):
        data = client.get('/api/parameters').get_json()
        assert data['types'] == ['model', 'temperature']
        assert data['summary']['model']['best'] == 'gpt-4'

    def test_parameter_ratings(self, client):
        data = client.get('/api/parameters/model?limit=2').get_json()
        values = [row['parameter_value'] for row in data['ratings']]
        assert values == ['gpt-4', 'claude-3']

    def test_unknown_parameter(self, client):
        assert client.get('/api/parameters/top_p').status_code == 404
        assert client.get('/api/charts/top_p.png').status_code == 404

    def test_combinations(self, client):
        data = client.get('/api/combinations?limit=1').get_json()
        assert len(data['combinations']) == 1
        assert data['combinations'][0]['combination']['model'] == 'gpt-4'

    def test_experiments(self, client):
        data = client.get('/api/experiments').get_json()
        assert data['total'] == 1
        assert data['experiments'][0]['description'] == 'sweep'

    def test_report(self, client):
        response = client.get('/api/report')
        assert response.mimetype == 'text/markdown'
        assert response.get_data(as_text=True).startswith('# Configuration Report')

    def test_chart(self, client):
        response = client.get('/api/charts/model.png')
        assert response.status_code == 200
        assert response.mimetype == 'image/png'
        assert response.data.startswith(b'\x89PNG')
