"""API routes."""

from flask import Blueprint

from pdf_compressor.services import compression_service

api_bp = Blueprint("api", __name__)

api_bp.add_url_rule(
    "/compress",
    endpoint="compress",
    view_func=compression_service.compress,
    methods=["POST"],
)
