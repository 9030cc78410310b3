"""
Custom exceptions for the partfill enrichment tool.

Provides specific exception types for the failure modes that reach the
caller, plus a record type for row-local failures that don't.
"""

from __future__ import annotations

from dataclasses import dataclass


class EnrichmentError(Exception):
    """Base exception for all enrichment-related errors.

    Attributes:
        message: Human-readable error description.
        row_index: Row that triggered the error (``None`` for non-row errors).
        field: Column name involved (``None`` if not column-specific).
    """

    def __init__(self, message: str, row_index: int | None = None, field: str | None = None):
        self.message = message
        self.row_index = row_index
        self.field = field

        # Build descriptive error message
        error_parts = [message]
        if row_index is not None:
            error_parts.append(f"Row: {row_index}")
        if field is not None:
            error_parts.append(f"Field: {field}")

        super().__init__(" | ".join(error_parts))


class StructuralError(EnrichmentError):
    """Raised when the input table cannot be enriched at all.

    Job-fatal: raised before any row is looked up, and no partial output
    is produced.
    """

    pass


class MissingIdentifierColumnError(StructuralError):
    """Raised when the header row has no identifier column.

    Attributes:
        column: The required column name.
        found: Column names that were present in the header.
    """

    def __init__(self, column: str, found: list[str] | None = None):
        self.column = column
        self.found = list(found or [])
        message = f"Table must contain a '{column}' column"
        if self.found:
            message += f". Found: {', '.join(self.found)}"
        super().__init__(message, field=column)


class ConfigurationError(EnrichmentError):
    """Raised when configuration or job arguments are invalid.

    Common causes:
        - Empty lookup URL template.
        - URL template without the ``{part_number}`` placeholder.
    """

    pass


class UnsupportedFileError(EnrichmentError):
    """Raised when an input file is not a supported spreadsheet format."""

    def __init__(self, filename: str, allowed: tuple[str, ...]):
        self.filename = filename
        self.allowed = allowed
        super().__init__(
            f"Invalid file format for '{filename}'. "
            f"Please upload a valid spreadsheet ({', '.join(allowed)})"
        )


@dataclass
class RowError:
    """Per-row failure record, kept for the summary and logs only.

    Row errors never propagate: the row is left unchanged and the job
    moves on.
    """

    row_index: int
    part_number: str
    error_type: str
    message: str

    def __str__(self) -> str:
        return f"RowError(row={self.row_index}, part='{self.part_number}', {self.error_type}: {self.message})"
