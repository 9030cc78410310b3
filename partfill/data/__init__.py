"""
Data handling components for the partfill enrichment tool.

Spreadsheet reading and writing lives in :mod:`partfill.data.workbook`.
"""

from .columns import ColumnMap, ColumnMapper, IDENTIFIER_COLUMN, RECOGNIZED_COLUMNS

__all__ = ['ColumnMap', 'ColumnMapper', 'IDENTIFIER_COLUMN', 'RECOGNIZED_COLUMNS']
