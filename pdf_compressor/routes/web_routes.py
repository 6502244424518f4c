"""Health and diagnostic routes."""

from flask import Blueprint

from pdf_compressor.services import status_service

web_bp = Blueprint("web", __name__)


@web_bp.get("/health")
def health():
    return status_service.health()


@web_bp.get("/check-gs")
def check_gs():
    return status_service.check_gs()
