"""Shared helpers for building signed PDF upload requests."""

import io
import shutil
import time

from PyPDF2 import PdfWriter

from pdf_compressor.core.security import compute_signature

SECRET = "test-shared-secret"


def make_pdf_bytes(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def signed_headers(secret: str = SECRET, timestamp: str | None = None) -> dict:
    timestamp = timestamp or str(int(time.time() * 1000))
    return {
        "x-timestamp": timestamp,
        "x-signature": compute_signature(secret, timestamp),
    }


def upload(data: bytes, filename: str = "doc.pdf", content_type: str = "application/pdf") -> dict:
    return {"file": (io.BytesIO(data), filename, content_type)}


def copy_processor(input_path, output_path, gs_cmd="gs", timeout=300):
    """Stand-in for Ghostscript that copies the input through unchanged."""
    del gs_cmd, timeout
    shutil.copyfile(input_path, output_path)


