"""Health and Ghostscript diagnostic endpoints."""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

import psutil
from flask import jsonify

from pdf_compressor.core.exceptions import ProcessorMissingError
from pdf_compressor.engine.ghostscript import get_ghostscript_command, get_ghostscript_version
from pdf_compressor.services.compression_service import get_config

logger = logging.getLogger(__name__)


def build_health_snapshot() -> Dict[str, Any]:
    """Build a lightweight liveness snapshot."""
    config = get_config()
    process = psutil.Process()
    gs_found = get_ghostscript_command() is not None

    return {
        "status": "ok",
        "version": config.build_id,
        "uptime": round(time.time() - process.create_time(), 3),
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "environment": config.environment,
        "maxFileSize": config.max_file_size,
        "memoryUsage": process.memory_info().rss,
        "ghostscript": {
            "available": gs_found,
            "command": config.ghostscript_command,
        },
    }


def health():
    """Health check endpoint."""
    return jsonify(build_health_snapshot())


def check_gs():
    """Report the installed Ghostscript version, or 500 when it cannot run."""
    config = get_config()
    try:
        version = get_ghostscript_version(config.ghostscript_command)
    except ProcessorMissingError as exc:
        cause = exc.original_error
        logger.warning("Ghostscript check failed: %s", cause)
        return jsonify({"status": "missing", "error": str(cause or exc)}), 500
    return jsonify({"ghostscript": version, "status": "installed"})
