"""Signed PDF compression service package."""

__all__ = ["create_app"]

__version__ = "1.0.0"


def create_app(config=None):
    """Lazily import app factory to avoid import-time side effects."""
    from pdf_compressor.factory import create_app as _create_app

    return _create_app(config)
