"""
Utility helpers for the partfill enrichment tool.
"""

from .logger import get_logger, setup_logging

__all__ = ['get_logger', 'setup_logging']
