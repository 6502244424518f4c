"""Signed PDF compression endpoint: upload validation, Ghostscript, cleanup."""

import io
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

from flask import current_app, jsonify, request, send_file
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import HTTPException, NotFound, RequestEntityTooLarge

from pdf_compressor.config import RuntimeConfig
from pdf_compressor.core.exceptions import (
    FileTooLargeError,
    InvalidUploadError,
    OutputUnreadableError,
    PDFCompressionError,
    StorageExhaustedError,
)
from pdf_compressor.core.security import require_signature
from pdf_compressor.core.utils import format_mb
from pdf_compressor.engine.ghostscript import run_compression
from pdf_compressor.engine.pdf_diagnostics import build_compression_summary, count_pages
from pdf_compressor.services import file_service

# Config
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

EXTENSION_KEY = "pdf_compressor"
ENVIRONMENT_HEADER = "x-environment"
DEFAULT_REQUEST_ENVIRONMENT = "production"
PDF_MAGIC = b"%PDF-"


def get_config() -> RuntimeConfig:
    """Return the immutable runtime config attached to the current app."""
    return current_app.extensions[EXTENSION_KEY]


def configure_app(app, config: RuntimeConfig) -> None:
    """Attach the runtime config and apply the request body limit."""
    Path(config.tmp_dir).mkdir(parents=True, exist_ok=True)
    app.config["MAX_CONTENT_LENGTH"] = config.body_limit
    app.extensions[EXTENSION_KEY] = config


def register_error_handlers(app) -> None:
    """Register HTTP and framework error handlers."""
    app.register_error_handler(PDFCompressionError, handle_compression_error)
    app.register_error_handler(RequestEntityTooLarge, handle_large_file)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_error)


def create_error_response(error: Exception, status_code: int = 500):
    """Create standardized JSON error response.

    Always includes 'error'; taxonomy errors add 'error_type' and any extra
    fields such as size limits or processor details.
    """
    if isinstance(error, PDFCompressionError):
        payload: Dict[str, Any] = {
            "success": False,
            "error": error.message,
            "error_type": error.error_type,
            "error_message": error.message,
        }
        payload.update(error.extra_fields())
        return jsonify(payload), status_code

    if isinstance(error, HTTPException):
        message = error.description or error.name
    else:
        message = "Internal compression error"
    return jsonify({
        "success": False,
        "error": message,
        "error_type": "UnknownError",
        "error_message": message,
    }), status_code


# Error handlers
def handle_compression_error(e: PDFCompressionError):
    return create_error_response(e, e.status_code)


def handle_large_file(e):
    limit = get_config().body_limit
    message = f"Request body too large (max {format_mb(limit)})"
    logger.warning("Rejected oversized request body on %s", request.path)
    return jsonify({
        "success": False,
        "error": message,
        "error_type": "FileTooLarge",
        "error_message": message,
        "maxSize": get_config().max_file_size,
    }), 413


def handle_http_exception(e):
    if isinstance(e, NotFound):
        logger.info("404 %s %s", request.method, request.path)
    else:
        logger.warning("HTTP %s on %s %s: %s", e.code, request.method, request.path, e.description)
    return create_error_response(e, e.code or 400)


def handle_error(e):
    if file_service.is_storage_exhausted(e):
        logger.error("Storage exhausted while handling %s: %s", request.path, e)
        return create_error_response(StorageExhaustedError(e), 507)
    logger.exception("Unexpected error during compression")
    return create_error_response(e, 500)


def _first_upload() -> FileStorage | None:
    if not request.files:
        return None
    return next(iter(request.files.values()), None)


def extract_upload(config: RuntimeConfig) -> Tuple[bytes, str]:
    """Pull the single file part out of the multipart body and validate it.

    Returns:
        (pdf_bytes, filename) tuple.

    Raises:
        InvalidUploadError: No file part, non-PDF MIME type, or bad header.
        FileTooLargeError: Buffered upload exceeds ``max_file_size``.
    """
    upload = _first_upload()
    if upload is None:
        raise InvalidUploadError.no_file()

    pdf_bytes = upload.read()
    if len(pdf_bytes) > config.max_file_size:
        logger.warning(
            "File too large: %s bytes (max %s)", len(pdf_bytes), config.max_file_size
        )
        raise FileTooLargeError(config.max_file_size, len(pdf_bytes))

    mimetype = upload.mimetype
    if mimetype and "pdf" not in mimetype:
        logger.info("Rejected upload with declared type %s", mimetype)
        raise InvalidUploadError.wrong_type()

    if config.verify_pdf_header and not pdf_bytes[:5] == PDF_MAGIC:
        raise InvalidUploadError.bad_header()

    return pdf_bytes, upload.filename or "upload.pdf"


def compress_bytes(pdf_bytes: bytes, config: RuntimeConfig, environment: str = DEFAULT_REQUEST_ENVIRONMENT) -> bytes:
    """Stage ``pdf_bytes``, run Ghostscript and return the compressed bytes.

    Both temporary files are removed before this returns or raises.
    """
    with file_service.staged_pair(config.tmp_dir) as pair:
        try:
            file_service.write_input(pair, pdf_bytes)
        except OSError as exc:
            if file_service.is_storage_exhausted(exc):
                logger.error("No space left staging %s: %s", pair.input_path.name, exc)
                raise StorageExhaustedError(exc) from exc
            raise

        page_count = count_pages(pair.input_path) if config.pdf_precheck_enabled else None

        logger.info(
            f"Compressing {pair.input_path.name} ({format_mb(len(pdf_bytes))}, "
            f"pages={page_count if page_count is not None else '?'})"
        )
        run_compression(
            pair.input_path,
            pair.output_path,
            gs_cmd=config.ghostscript_command,
            timeout=config.processor_timeout_seconds,
        )

        try:
            compressed = file_service.read_output(pair)
        except OSError as exc:
            logger.error("Failed to read compressed file %s: %s", pair.output_path.name, exc)
            raise OutputUnreadableError(exc) from exc

    summary = build_compression_summary(
        len(pdf_bytes), len(compressed), page_count=page_count, environment=environment
    )
    logger.info("Compression successful: %s", summary)
    return compressed


# Routes
@require_signature
def compress():
    """
    Compress an uploaded PDF with Ghostscript.

    Accepts multipart/form-data with a single file field, signed with
    ``x-signature`` (hex HMAC-SHA256 of ``x-timestamp``). Returns the
    compressed PDF bytes.
    """
    config = get_config()
    environment = request.headers.get(ENVIRONMENT_HEADER) or DEFAULT_REQUEST_ENVIRONMENT

    pdf_bytes, filename = extract_upload(config)
    logger.info(f"Compress request with upload: {filename} ({format_mb(len(pdf_bytes))}, env={environment})")

    compressed = compress_bytes(pdf_bytes, config, environment=environment)

    return send_file(
        io.BytesIO(compressed),
        mimetype="application/pdf",
        max_age=0,
    )
