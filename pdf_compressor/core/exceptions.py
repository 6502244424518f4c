"""Custom exceptions for the signed PDF compression endpoint.

Every exception carries the HTTP status it maps to and a short message that is
safe to show to the caller. Extra response fields (size limits, processor
details) are exposed through ``extra_fields``.
"""

from typing import Any, Dict, Optional


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid."""


class PDFCompressionError(Exception):
    """Base exception for all request-scoped compression errors."""

    error_type: str = "PDFCompressionError"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def extra_fields(self) -> Dict[str, Any]:
        """Additional JSON fields merged into the error response."""
        return {}


class AuthenticationError(PDFCompressionError):
    """Signature or timestamp is missing, malformed, or does not match."""

    error_type: str = "AuthenticationError"
    status_code: int = 403

    @staticmethod
    def missing() -> "AuthenticationError":
        return AuthenticationError("Unauthorized: Missing signature or timestamp")

    @staticmethod
    def invalid() -> "AuthenticationError":
        return AuthenticationError("Unauthorized: Invalid signature")


class InvalidUploadError(PDFCompressionError):
    """The request does not carry a usable PDF upload."""

    error_type: str = "InvalidUploadError"
    status_code: int = 400

    @staticmethod
    def no_file() -> "InvalidUploadError":
        return InvalidUploadError("No file provided")

    @staticmethod
    def wrong_type() -> "InvalidUploadError":
        return InvalidUploadError("Invalid file type. Only PDF files are supported")

    @staticmethod
    def bad_header() -> "InvalidUploadError":
        return InvalidUploadError("Invalid PDF file")


class FileTooLargeError(PDFCompressionError):
    """Upload exceeds the configured maximum size."""

    error_type: str = "FileTooLarge"
    status_code: int = 422

    def __init__(self, max_size: int, received_size: int) -> None:
        super().__init__("File too large")
        self.max_size = max_size
        self.received_size = received_size

    def extra_fields(self) -> Dict[str, Any]:
        return {"maxSize": self.max_size, "receivedSize": self.received_size}


class ProcessorMissingError(PDFCompressionError):
    """Ghostscript binary is not installed or not on PATH."""

    error_type: str = "ProcessorMissingError"
    status_code: int = 500

    def __init__(self, command: str = "gs", original_error: Optional[Exception] = None) -> None:
        super().__init__(
            "Ghostscript not found. Please ensure Ghostscript is installed.",
            original_error,
        )
        self.command = command


class ProcessorRejectedInputError(PDFCompressionError):
    """Ghostscript exited non-zero, usually because the input is not a valid PDF."""

    error_type: str = "ProcessorRejectedInputError"
    status_code: int = 422

    def __init__(self, details: str = "", original_error: Optional[Exception] = None) -> None:
        super().__init__(
            "PDF compression failed. The file may be corrupted or invalid.",
            original_error,
        )
        self.details = details

    def extra_fields(self) -> Dict[str, Any]:
        return {"details": self.details} if self.details else {}


class ProcessingTimeoutError(ProcessorRejectedInputError):
    """Ghostscript did not finish within the configured time budget."""

    error_type: str = "ProcessingTimeoutError"

    def __init__(self, timeout_seconds: float, original_error: Optional[Exception] = None) -> None:
        super().__init__(
            f"Ghostscript did not finish within {timeout_seconds:g} seconds",
            original_error,
        )
        self.message = "PDF compression timed out. The file may be too complex to process."
        self.args = (self.message,)
        self.timeout_seconds = timeout_seconds

    def extra_fields(self) -> Dict[str, Any]:
        fields = super().extra_fields()
        fields["timeoutSeconds"] = self.timeout_seconds
        return fields


class OutputUnreadableError(PDFCompressionError):
    """Ghostscript reported success but the output file could not be read."""

    error_type: str = "OutputUnreadableError"
    status_code: int = 500

    def __init__(self, original_error: Optional[Exception] = None) -> None:
        super().__init__("Failed to read compressed file", original_error)


class StorageExhaustedError(PDFCompressionError):
    """The temporary directory ran out of space (or quota) while staging files."""

    error_type: str = "StorageExhaustedError"
    status_code: int = 507

    def __init__(self, original_error: Optional[Exception] = None) -> None:
        super().__init__("Insufficient storage space", original_error)
