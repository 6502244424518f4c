"""WSGI entry point (``gunicorn app:app``) and local dev server."""

import logging
import sys

from dotenv import load_dotenv

from pdf_compressor import create_app
from pdf_compressor.config import load_runtime_config
from pdf_compressor.core.exceptions import ConfigurationError

load_dotenv()

logger = logging.getLogger("pdf_compressor.app")

try:
    runtime_config = load_runtime_config()
except ConfigurationError as exc:
    logging.basicConfig(level=logging.INFO, stream=sys.stdout)
    logger.critical("FATAL: %s", exc)
    sys.exit(1)

app = create_app(runtime_config)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=runtime_config.port)
