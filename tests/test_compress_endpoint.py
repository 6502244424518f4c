import errno
import io
import logging
import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from PyPDF2 import PdfReader

from helpers import SECRET, copy_processor, make_pdf_bytes, signed_headers, upload
from pdf_compressor.config import RuntimeConfig
from pdf_compressor.core.exceptions import ProcessorRejectedInputError
from pdf_compressor.factory import create_app
from pdf_compressor.services import compression_service, file_service

RUN_COMPRESSION = "pdf_compressor.services.compression_service.run_compression"


def _post(client, data=None, headers=None, **kwargs):
    return client.post(
        "/compress",
        data=data,
        headers=signed_headers() if headers is None else headers,
        content_type=kwargs.pop("content_type", "multipart/form-data"),
        **kwargs,
    )


def _assert_empty(tmp_dir: Path):
    assert list(tmp_dir.iterdir()) == []


# Signature checks

def test_missing_signature_is_forbidden(client, tmp_dir):
    headers = signed_headers()
    del headers["x-signature"]
    resp = _post(client, upload(make_pdf_bytes()), headers=headers)

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Unauthorized: Missing signature or timestamp"
    _assert_empty(tmp_dir)


def test_missing_timestamp_is_forbidden(client):
    headers = signed_headers()
    del headers["x-timestamp"]
    resp = _post(client, upload(make_pdf_bytes()), headers=headers)
    assert resp.status_code == 403


def test_invalid_signature_is_forbidden(client):
    headers = signed_headers(secret="wrong-secret")
    resp = _post(client, upload(make_pdf_bytes()), headers=headers)

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Unauthorized: Invalid signature"


def test_non_hex_signature_is_forbidden_not_crash(client):
    headers = {"x-timestamp": "123", "x-signature": "not hex at all"}
    resp = _post(client, upload(make_pdf_bytes()), headers=headers)
    assert resp.status_code == 403


def test_stale_timestamp_rejected_when_window_configured(tmp_dir):
    config = RuntimeConfig(shared_secret=SECRET, tmp_dir=str(tmp_dir), signature_max_age_seconds=60)
    client = create_app(config).test_client()
    headers = signed_headers(timestamp=str(int((time.time() - 3600) * 1000)))

    resp = _post(client, upload(make_pdf_bytes()), headers=headers)
    assert resp.status_code == 403


# Upload validation

def test_non_multipart_body_is_bad_request(client, tmp_dir):
    resp = _post(client, data=make_pdf_bytes(), content_type="application/pdf")

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No file provided"
    _assert_empty(tmp_dir)


def test_multipart_without_file_is_bad_request(client):
    resp = _post(client, data={"name": "no file here"})
    assert resp.status_code == 400


def test_file_over_limit_is_unprocessable(client, config, tmp_dir):
    too_big = b"%PDF-" + b"0" * (config.max_file_size + 1 - 5)
    resp = _post(client, upload(too_big))

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["error"] == "File too large"
    assert body["maxSize"] == config.max_file_size
    assert body["receivedSize"] == config.max_file_size + 1
    _assert_empty(tmp_dir)


def test_file_at_limit_is_accepted(client, config, monkeypatch):
    monkeypatch.setattr(RUN_COMPRESSION, copy_processor)
    exact = b"%PDF-" + b"0" * (config.max_file_size - 5)
    resp = _post(client, upload(exact))
    assert resp.status_code == 200


def test_text_plain_upload_is_bad_request(client, tmp_dir):
    resp = _post(client, upload(make_pdf_bytes(), filename="doc.pdf", content_type="text/plain"))

    assert resp.status_code == 400
    assert "Only PDF files" in resp.get_json()["error"]
    _assert_empty(tmp_dir)


def test_pdf_like_mime_types_are_accepted(client, monkeypatch):
    monkeypatch.setattr(RUN_COMPRESSION, copy_processor)
    resp = _post(client, upload(make_pdf_bytes(), content_type="application/x-pdf"))
    assert resp.status_code == 200


def test_non_pdf_bytes_with_pdf_mime_reach_processor_by_default(client, monkeypatch):
    seen = {}

    def _record(input_path, output_path, gs_cmd="gs", timeout=300):
        seen["data"] = Path(input_path).read_bytes()
        shutil.copyfile(input_path, output_path)

    monkeypatch.setattr(RUN_COMPRESSION, _record)
    resp = _post(client, upload(b"plain text pretending"))

    assert resp.status_code == 200
    assert seen["data"] == b"plain text pretending"


def test_pdf_header_check_when_enabled(tmp_dir):
    config = RuntimeConfig(shared_secret=SECRET, tmp_dir=str(tmp_dir), verify_pdf_header=True)
    client = create_app(config).test_client()

    resp = _post(client, upload(b"plain text pretending"))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid PDF file"


def test_body_over_http_limit_is_rejected(app, client):
    app.config["MAX_CONTENT_LENGTH"] = 100
    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 413
    assert resp.get_json()["error_type"] == "FileTooLarge"


# Processor outcomes

def test_success_returns_pdf_bytes(client, tmp_dir, monkeypatch):
    monkeypatch.setattr(RUN_COMPRESSION, copy_processor)
    original = make_pdf_bytes(pages=2)

    resp = _post(client, upload(original), headers={**signed_headers(), "x-environment": "staging"})

    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data == original
    _assert_empty(tmp_dir)


def test_missing_binary_is_server_error(tmp_dir):
    config = RuntimeConfig(
        shared_secret=SECRET,
        tmp_dir=str(tmp_dir),
        ghostscript_command="definitely-not-a-ghostscript-binary",
        pdf_precheck_enabled=False,
    )
    client = create_app(config).test_client()

    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 500
    assert "Ghostscript not found" in resp.get_json()["error"]
    _assert_empty(tmp_dir)


def test_processor_failure_is_unprocessable(client, tmp_dir, monkeypatch):
    def _reject(input_path, output_path, gs_cmd="gs", timeout=300):
        Path(output_path).write_bytes(b"half-written")
        raise ProcessorRejectedInputError("PDF is damaged or corrupted.")

    monkeypatch.setattr(RUN_COMPRESSION, _reject)
    resp = _post(client, upload(b"%PDF-1.4 garbage"))

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["error"] == "PDF compression failed. The file may be corrupted or invalid."
    assert body["details"] == "PDF is damaged or corrupted."
    _assert_empty(tmp_dir)


def test_missing_output_is_server_error(client, tmp_dir, monkeypatch):
    monkeypatch.setattr(RUN_COMPRESSION, lambda *args, **kwargs: None)
    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "Failed to read compressed file"
    _assert_empty(tmp_dir)


def test_storage_exhausted_while_staging(client, tmp_dir, monkeypatch):
    def _no_space(pair, data):
        pair.input_path.write_bytes(data[:3])
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(file_service, "write_input", _no_space)
    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 507
    assert resp.get_json()["error"] == "Insufficient storage space"
    _assert_empty(tmp_dir)


def test_storage_exhausted_elsewhere_is_insufficient_storage(client, tmp_dir, monkeypatch):
    def _no_space(input_path, output_path, gs_cmd="gs", timeout=300):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(RUN_COMPRESSION, _no_space)
    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 507
    _assert_empty(tmp_dir)


def test_unexpected_error_is_internal_error(client, tmp_dir, monkeypatch):
    def _boom(input_path, output_path, gs_cmd="gs", timeout=300):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(RUN_COMPRESSION, _boom)
    resp = _post(client, upload(make_pdf_bytes()))

    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "Internal compression error"
    assert "secret internals" not in resp.get_data(as_text=True)
    _assert_empty(tmp_dir)


# Concurrency and cleanup

def test_concurrent_requests_use_distinct_paths_and_clean_up(app, tmp_dir, monkeypatch):
    seen = []
    lock = threading.Lock()

    def _slow_copy(input_path, output_path, gs_cmd="gs", timeout=300):
        with lock:
            seen.append(Path(input_path))
        time.sleep(0.01)
        shutil.copyfile(input_path, output_path)

    monkeypatch.setattr(RUN_COMPRESSION, _slow_copy)
    payloads = [make_pdf_bytes(pages=n) for n in range(1, 9)]

    def _send(payload):
        with app.test_client() as c:
            resp = _post(c, upload(payload))
            return resp.status_code, resp.data, payload

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(_send, payloads * 4))

    for status, data, payload in results:
        assert status == 200
        assert data == payload
    assert len(set(seen)) == len(seen) == len(results)
    _assert_empty(tmp_dir)


# Real Ghostscript

gs_required = pytest.mark.skipif(shutil.which("gs") is None, reason="Ghostscript not installed")


@gs_required
def test_real_ghostscript_round_trip(tmp_dir):
    config = RuntimeConfig(shared_secret=SECRET, tmp_dir=str(tmp_dir), ghostscript_command="gs")
    client = create_app(config).test_client()

    resp = _post(client, upload(make_pdf_bytes(pages=3)))

    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    reader = PdfReader(io.BytesIO(resp.data))
    assert len(reader.pages) == 3
    _assert_empty(tmp_dir)


@gs_required
def test_real_ghostscript_rejects_corrupt_input(tmp_dir):
    config = RuntimeConfig(shared_secret=SECRET, tmp_dir=str(tmp_dir), ghostscript_command="gs")
    client = create_app(config).test_client()

    resp = _post(client, upload(b"this is not really a pdf\n" * 10))

    assert resp.status_code == 422
    _assert_empty(tmp_dir)


def test_compress_bytes_is_usable_without_a_request(config, tmp_dir, monkeypatch):
    monkeypatch.setattr(RUN_COMPRESSION, copy_processor)
    data = make_pdf_bytes()

    assert compression_service.compress_bytes(data, config) == data
    _assert_empty(tmp_dir)


@pytest.mark.parametrize(
    "payload, pages",
    [(make_pdf_bytes(pages=2), "pages=2"), (b"%PDF-1.4 not a real document", "pages=?")],
)
def test_page_count_precheck_runs_on_default_path(tmp_dir, monkeypatch, caplog, payload, pages):
    config = RuntimeConfig(shared_secret=SECRET, tmp_dir=str(tmp_dir))
    assert config.pdf_precheck_enabled
    client = create_app(config).test_client()
    monkeypatch.setattr(RUN_COMPRESSION, copy_processor)
    caplog.set_level(logging.INFO, logger=compression_service.logger.name)

    resp = _post(client, upload(payload))

    assert resp.status_code == 200
    assert resp.data == payload
    assert any(pages in record.getMessage() for record in caplog.records)
    _assert_empty(tmp_dir)
