"""
Error taxonomy for the bulk family import.

``ParseError`` and ``AuthenticationError`` abort an import before anything
is written. ``EmptyImportError`` means the file held nothing to import and
must be reported as such rather than as a crash. Per-family persistence
failures are ``famcare.db.repository.PersistenceError`` and never escape the
upsert loop.
"""
from typing import Optional


class ImportPipelineError(Exception):
    """Base class for errors that stop an import run."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ParseError(ImportPipelineError):
    """Raised when an uploaded file cannot be read as tabular data."""

    def __init__(self, file_name: Optional[str], message: Optional[str] = None):
        self.file_name = file_name
        super().__init__(
            message or f"Could not read '{file_name}'. Check that the file format is correct."
        )


class EmptyImportError(ImportPipelineError):
    """Raised when no FAMILY/MEMBER rows survive filtering."""

    def __init__(self, file_name: Optional[str] = None, message: Optional[str] = None):
        self.file_name = file_name
        super().__init__(message or "The file is empty or has no FAMILY/MEMBER rows to import.")


class AuthenticationError(ImportPipelineError):
    """Raised when no authenticated account is available."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "User is not authenticated.")
