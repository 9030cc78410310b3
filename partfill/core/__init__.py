"""
Core functionality for the partfill enrichment tool.

Row merging lives in :mod:`partfill.core.enricher`; it is imported from
there directly because it depends on the column and client modules.
"""

from .config import EnrichmentConfig
from .exceptions import (
    EnrichmentError,
    StructuralError,
    MissingIdentifierColumnError,
    ConfigurationError,
    UnsupportedFileError,
    RowError,
)
from .hooks import EnrichmentHooks, JobStartEvent, RowCompleteEvent, JobEndEvent

__all__ = [
    'EnrichmentConfig',
    'EnrichmentError',
    'StructuralError',
    'MissingIdentifierColumnError',
    'ConfigurationError',
    'UnsupportedFileError',
    'RowError',
    'EnrichmentHooks',
    'JobStartEvent',
    'RowCompleteEvent',
    'JobEndEvent',
]
