"""Ghostscript invocation for print-quality PDF recompression."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from pdf_compressor.core.exceptions import (
    ProcessingTimeoutError,
    ProcessorMissingError,
    ProcessorRejectedInputError,
)

logger = logging.getLogger(__name__)

VERSION_TIMEOUT_SECONDS = 10


def get_ghostscript_command() -> Optional[str]:
    """Get Ghostscript binary name for current platform."""
    for name in ["gs", "gswin64c", "gswin32c"]:
        if shutil.which(name):
            return name
    return None


def build_compress_command(gs_cmd: str, input_path: Path, output_path: Path) -> List[str]:
    """Build the fixed Ghostscript argument vector.

    Paths are passed as discrete arguments and the command is never run
    through a shell.
    """
    return [
        gs_cmd,
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.5",
        "-dPDFSETTINGS=/printer",
        "-dNOPAUSE",
        "-dBATCH",
        "-dQUIET",
        "-dSAFER",
        # Keep every font intact for fidelity
        "-dEmbedAllFonts=true",
        "-dSubsetFonts=false",
        "-dCompressFonts=false",
        "-dConvertCMYKImagesToRGB=false",
        # 150 DPI for color/gray, mono keeps 300 DPI for legible text
        "-dColorImageDownsampleType=/Bicubic",
        "-dColorImageResolution=150",
        "-dGrayImageResolution=150",
        "-dMonoImageResolution=300",
        f"-sOutputFile={output_path}",
        str(input_path),
    ]


def translate_ghostscript_error(stderr: str, return_code: int) -> str:
    """Translate Ghostscript stderr to a short, caller-safe detail string.

    Also logs the full stderr for debugging purposes.
    """
    logger.error(f"Ghostscript failed (exit code {return_code}). Full error:\n{stderr}")

    stderr_lower = (stderr or "").lower()

    if 'invalidfileaccess' in stderr_lower or 'password' in stderr_lower:
        return "PDF is password-protected or locked. Please remove the password and try again."

    if 'typecheck' in stderr_lower or 'rangecheck' in stderr_lower:
        return "PDF has corrupted internal data. Try re-saving it from Adobe Acrobat."

    if any(x in stderr_lower for x in ['undefined', 'ioerror', 'syntaxerror', 'eofread']):
        return "PDF is damaged or corrupted. Please use a different copy of the file."

    return f"PDF processing failed (Ghostscript exit code {return_code}). The file may be corrupted."


def run_compression(
    input_path: Path,
    output_path: Path,
    gs_cmd: str = "gs",
    timeout: float = 300,
) -> None:
    """Run Ghostscript on ``input_path`` and write the result to ``output_path``.

    Raises:
        ProcessorMissingError: The Ghostscript binary could not be executed.
        ProcessorRejectedInputError: Ghostscript exited with a non-zero code.
        ProcessingTimeoutError: Ghostscript exceeded ``timeout`` and was killed.
        OSError: Any other OS-level failure (e.g. no space left on device).
    """
    cmd = build_compress_command(gs_cmd, input_path, output_path)

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            shell=False,
        )
    except FileNotFoundError as exc:
        logger.error("Ghostscript binary not found: %s", gs_cmd)
        raise ProcessorMissingError(gs_cmd, exc) from exc
    except subprocess.TimeoutExpired as exc:
        logger.error("Ghostscript timed out after %ss on %s", timeout, input_path.name)
        raise ProcessingTimeoutError(timeout, exc) from exc

    if result.returncode != 0:
        detail = translate_ghostscript_error(result.stderr, result.returncode)
        raise ProcessorRejectedInputError(detail)


def get_ghostscript_version(gs_cmd: str = "gs") -> str:
    """Return the installed Ghostscript version string (``gs --version``).

    Raises:
        ProcessorMissingError: If the binary is missing or the call fails.
    """
    try:
        result = subprocess.run(
            [gs_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise ProcessorMissingError(gs_cmd, exc) from exc
    return result.stdout.strip()
