"""Job execution engine for the partfill enrichment tool."""

from .job import EnrichmentJob, EnrichmentResult, EnrichmentSummary

__all__ = ["EnrichmentJob", "EnrichmentResult", "EnrichmentSummary"]
