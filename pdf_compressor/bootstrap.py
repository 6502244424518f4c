"""Once-per-process startup logging."""

from __future__ import annotations

import logging
import threading

from pdf_compressor import __version__
from pdf_compressor.config import RuntimeConfig, SECRET_ENV_VAR
from pdf_compressor.core.utils import format_mb
from pdf_compressor.engine.ghostscript import get_ghostscript_command

logger = logging.getLogger(__name__)

_bootstrap_lock = threading.Lock()
_bootstrap_started = False

_BOX_LABEL_WIDTH = 24
_BOX_VALUE_WIDTH = 40
_BOX_INNER_WIDTH = _BOX_LABEL_WIDTH + _BOX_VALUE_WIDTH + 5


def _truncate(value, width: int) -> str:
    text = str(value)
    if len(text) <= width:
        return text
    return text[: max(0, width - 3)] + "..."


def _banner(title: str) -> list[str]:
    title_text = f"[ {title} ]"
    border = "+" + "=" * _BOX_INNER_WIDTH + "+"
    return [border, f"|{title_text:^{_BOX_INNER_WIDTH}}|", border]


def _box(title: str, rows: list[tuple[str, str]]) -> list[str]:
    title_text = f" {title} "
    title_border = "+" + "=" * _BOX_INNER_WIDTH + "+"
    row_border = (
        "+"
        + "-" * (_BOX_LABEL_WIDTH + 2)
        + "+"
        + "-" * (_BOX_VALUE_WIDTH + 2)
        + "+"
    )
    lines = [title_border, f"|{title_text:^{_BOX_INNER_WIDTH}}|", title_border]
    lines.append(row_border)
    for label, value in rows:
        safe_label = _truncate(label, _BOX_LABEL_WIDTH)
        safe_value = _truncate(value, _BOX_VALUE_WIDTH)
        lines.append(f"| {safe_label:<{_BOX_LABEL_WIDTH}} | {safe_value:<{_BOX_VALUE_WIDTH}} |")
    lines.append(row_border)
    return lines


def build_startup_banner(config: RuntimeConfig) -> list[str]:
    """Render the startup banner describing the effective configuration."""
    gs_found = get_ghostscript_command()
    rows_server = [
        ("Port", str(config.port)),
        ("Max file size", format_mb(config.max_file_size)),
        ("Environment", config.environment),
        ("Build", config.build_id),
        ("Temp dir", config.tmp_dir),
    ]
    rows_processor = [
        ("Ghostscript", config.ghostscript_command if gs_found else f"{config.ghostscript_command} (not on PATH)"),
        ("Timeout", f"{config.processor_timeout_seconds}s"),
        ("PDF header check", "on" if config.verify_pdf_header else "off"),
    ]
    freshness = (
        f"{config.signature_max_age_seconds}s"
        if config.signature_max_age_seconds > 0
        else "off"
    )
    rows_security = [
        ("Signature", "HMAC-SHA256 (constant-time)"),
        ("Secret", f"{SECRET_ENV_VAR} set"),
        ("Timestamp window", freshness),
        ("Processor invocation", "argv only, no shell"),
    ]

    lines = _banner(f"PDF Compression Service v{__version__}")
    lines += _box("Server", rows_server)
    lines += _box("Processor", rows_processor)
    lines += _box("Security", rows_security)
    lines.append(f"Ready to compress PDFs: POST http://0.0.0.0:{config.port}/compress")
    return lines


def bootstrap_runtime(config: RuntimeConfig) -> None:
    """Log the startup banner once per process."""
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return

        logger.info("\n%s", "\n".join(build_startup_banner(config)))
        _bootstrap_started = True


def is_bootstrapped() -> bool:
    """Expose runtime bootstrap state for diagnostics/tests."""
    return _bootstrap_started
