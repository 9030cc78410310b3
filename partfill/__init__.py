"""
partfill - Part Catalog Enrichment Tool

Fills a bill-of-materials spreadsheet of part numbers with manufacturer,
description, lifecycle, price, stock and substitute-part data looked up
row by row from an external catalog service.
"""

# Import main classes for clean public API
from .core import (
    EnrichmentConfig,
    EnrichmentError,
    StructuralError,
    MissingIdentifierColumnError,
    ConfigurationError,
    UnsupportedFileError,
    EnrichmentHooks,
)
from .core.enricher import RowEnricher, RowOutcome, CellOutcome, OutcomeKind, RowStatus
from .clients import LookupClient, LookupResult, LookupStatus
from .data import ColumnMap, ColumnMapper
from .pipeline import EnrichmentJob, EnrichmentResult, EnrichmentSummary
from .schemas import PartRecord

__version__ = "0.1.0"

__all__ = [
    'EnrichmentJob',
    'EnrichmentResult',
    'EnrichmentSummary',
    'RowEnricher',
    'RowOutcome',
    'CellOutcome',
    'OutcomeKind',
    'RowStatus',
    'LookupClient',
    'LookupResult',
    'LookupStatus',
    'ColumnMap',
    'ColumnMapper',
    'PartRecord',
    'EnrichmentConfig',
    'EnrichmentHooks',
    'EnrichmentError',
    'StructuralError',
    'MissingIdentifierColumnError',
    'ConfigurationError',
    'UnsupportedFileError',
]
