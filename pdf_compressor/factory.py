"""Flask app factory."""

from __future__ import annotations

from typing import Optional

from flask import Flask

from pdf_compressor import bootstrap
from pdf_compressor.config import RuntimeConfig, load_runtime_config
from pdf_compressor.routes.api_routes import api_bp
from pdf_compressor.routes.web_routes import web_bp
from pdf_compressor.services import compression_service


def create_app(config: Optional[RuntimeConfig] = None) -> Flask:
    """Create and configure the Flask application.

    Raises:
        ConfigurationError: If no config is given and the environment lacks
            the shared secret.
    """
    app = Flask(__name__)

    runtime_config = config or load_runtime_config()
    compression_service.configure_app(app, runtime_config)

    app.register_blueprint(web_bp)
    app.register_blueprint(api_bp)
    compression_service.register_error_handlers(app)

    bootstrap.bootstrap_runtime(runtime_config)
    return app
