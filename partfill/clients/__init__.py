"""
Catalog service clients for the partfill enrichment tool.
"""

from .lookup import LookupClient, LookupResult, LookupStatus, build_url, PLACEHOLDER

__all__ = [
    'LookupClient',
    'LookupResult',
    'LookupStatus',
    'build_url',
    'PLACEHOLDER',
]
