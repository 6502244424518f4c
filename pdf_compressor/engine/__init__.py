"""Ghostscript invocation and PDF inspection."""
