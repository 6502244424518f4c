"""Application configuration loading."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from typing import Mapping, Optional

from pdf_compressor.core.exceptions import ConfigurationError
from pdf_compressor.core.utils import MIB, env_bool, env_int, env_str
from pdf_compressor.engine.ghostscript import get_ghostscript_command

SECRET_ENV_VAR = "COMPRESSION_SERVICE_SECRET"
DEFAULT_MAX_FILE_SIZE = 25 * MIB
DEFAULT_PORT = 8080
DEFAULT_PROCESSOR_TIMEOUT_SECONDS = 300
# Headroom for multipart framing on top of the file size limit.
BODY_LIMIT_OVERHEAD = 10 * MIB


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime configuration values consumed by the Flask app.

    Built once before the app starts serving and never mutated afterwards.
    """

    shared_secret: str
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    port: int = DEFAULT_PORT
    environment: str = "development"
    build_id: str = "local"
    tmp_dir: str = ""
    ghostscript_command: str = "gs"
    processor_timeout_seconds: int = DEFAULT_PROCESSOR_TIMEOUT_SECONDS
    verify_pdf_header: bool = False
    signature_max_age_seconds: int = 0
    pdf_precheck_enabled: bool = True

    def __post_init__(self) -> None:
        if not self.shared_secret or not self.shared_secret.strip():
            raise ConfigurationError(f"{SECRET_ENV_VAR} is not defined")
        if not self.tmp_dir:
            object.__setattr__(self, "tmp_dir", tempfile.gettempdir())

    @property
    def secret_bytes(self) -> bytes:
        return self.shared_secret.encode("utf-8")

    @property
    def body_limit(self) -> int:
        """Maximum accepted request body, enforced by Werkzeug before parsing."""
        return self.max_file_size + BODY_LIMIT_OVERHEAD


def load_runtime_config(environ: Optional[Mapping[str, str]] = None) -> RuntimeConfig:
    """Load runtime configuration from the process environment.

    Raises:
        ConfigurationError: If the shared secret is absent or blank.
    """
    source = os.environ if environ is None else environ

    gs_cmd = env_str("GS_COMMAND", "", source) or get_ghostscript_command() or "gs"

    return RuntimeConfig(
        shared_secret=source.get(SECRET_ENV_VAR) or "",
        max_file_size=env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE, source, minimum=1),
        port=env_int("PORT", DEFAULT_PORT, source, minimum=1),
        environment=env_str("ENVIRONMENT", "development", source),
        build_id=env_str("BUILD_ID", "local", source),
        tmp_dir=env_str("TMP_DIR", tempfile.gettempdir(), source),
        ghostscript_command=gs_cmd,
        processor_timeout_seconds=env_int(
            "GS_TIMEOUT_SECONDS", DEFAULT_PROCESSOR_TIMEOUT_SECONDS, source, minimum=1
        ),
        verify_pdf_header=env_bool("VERIFY_PDF_HEADER", False, source),
        signature_max_age_seconds=env_int("SIGNATURE_MAX_AGE_SECONDS", 0, source, minimum=0),
        pdf_precheck_enabled=env_bool("PDF_PRECHECK_ENABLED", True, source),
    )
