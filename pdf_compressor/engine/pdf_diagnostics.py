"""Lightweight PDF inspection used for compression logging.

Nothing here gates a request: failures are logged and reported as ``None``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

logger = logging.getLogger(__name__)


def count_pages(pdf_path: Path) -> Optional[int]:
    """Return the page count of ``pdf_path`` or ``None`` if it cannot be read."""
    try:
        with open(pdf_path, "rb") as handle:
            reader = PdfReader(handle, strict=False)
            if reader.is_encrypted:
                try:
                    reader.decrypt("")
                except Exception:
                    return None
            return len(reader.pages)
    except PdfReadError as e:
        logger.warning(f"[DIAGNOSTICS] PDF read error for {pdf_path.name}: {e}")
    except Exception as e:
        logger.warning(f"[DIAGNOSTICS] Page count failed for {pdf_path.name}: {e}")
    return None


def reduction_percent(original_size: int, compressed_size: int) -> float:
    """Percentage size reduction; negative when the output grew."""
    if original_size <= 0:
        return 0.0
    return (1 - compressed_size / original_size) * 100


def build_compression_summary(
    original_size: int,
    compressed_size: int,
    page_count: Optional[int] = None,
    environment: str = "production",
) -> Dict[str, Any]:
    """Assemble the observability record logged after a successful compression."""
    return {
        "environment": environment,
        "original_size": original_size,
        "compressed_size": compressed_size,
        "compression_ratio": f"{reduction_percent(original_size, compressed_size):.2f}%",
        "page_count": page_count,
    }
