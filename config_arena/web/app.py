"""
Flask web application for config-arena.

Serves the configuration API over a rating ledger.
"""

import logging

from flask import Flask, jsonify

from ..core.persistence import HistoryStore
from .config_api import config_bp

logger = logging.getLogger(__name__)


def create_app(store=None):
    """
    Create and configure the Flask application.

    Args:
        store: History store to serve (default: HistoryStore())
    """
    app = Flask(__name__)
    app.config['HISTORY_STORE'] = store if store is not None else HistoryStore()
    app.register_blueprint(config_bp)

    @app.route('/')
    def index():
        """Service description."""
        return jsonify({
            'service': 'config-arena',
            'store': repr(app.config['HISTORY_STORE']),
            'endpoints': sorted(
                str(rule) for rule in app.url_map.iter_rules()
                if str(rule).startswith('/api/')
            ),
        })

    return app


def main(store=None, host='127.0.0.1', port=5000, debug=False):
    """Run the Flask development server."""
    app = create_app(store)
    logger.info("Serving %r at http://%s:%d", app.config['HISTORY_STORE'], host, port)
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
