"""
Spreadsheet adapter for the partfill enrichment tool.

Reads the first worksheet of an Excel workbook (or a CSV file) into a plain
table, writes an :class:`~partfill.pipeline.job.EnrichmentResult` back into
the sheet and applies the presentation rules:

  - cells the catalog could not fill get a light pink background
  - header row bold, light gray, centered
  - column widths adjusted to content
  - thin borders around and inside the used range

Only the first worksheet is enriched; other sheets are saved untouched.
Lookups see formula cells as their cached values; every cell the job does
not write keeps its formula in the saved workbook.
"""

from __future__ import annotations

import uuid
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union
from zipfile import BadZipFile

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from ..core.config import EnrichmentConfig
from ..core.enricher import OutcomeKind
from ..core.exceptions import StructuralError, UnsupportedFileError
from ..pipeline.job import EnrichmentJob, EnrichmentResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xltx", ".xltm")
CSV_EXTENSIONS = (".csv",)
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS + CSV_EXTENSIONS

Source = Union[str, Path, bytes, BinaryIO]


def output_filename() -> str:
    """Name for a processed workbook: ``Processed_<uuid>.xlsx``."""
    return f"Processed_{uuid.uuid4().hex}.xlsx"


def file_extension(source: Source, filename: Optional[str] = None) -> str:
    """Lower-cased extension of *filename*, or of the source's own name.

    Sources without a name (raw bytes, anonymous streams) are taken to be
    ``.xlsx``.

    Raises:
        UnsupportedFileError: If the extension is not a supported format.
    """
    name = filename
    if name is None:
        if isinstance(source, (str, Path)):
            name = str(source)
        else:
            name = getattr(source, "name", None)
    if not name:
        return ".xlsx"

    extension = Path(name).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(Path(name).name, SUPPORTED_EXTENSIONS)
    return extension


def _as_stream(source: Source) -> Any:
    if isinstance(source, (bytes, bytearray)):
        return BytesIO(source)
    return source


def _source_bytes(source: Source) -> bytes:
    """Whole file content, so a workbook can be loaded more than once."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as e:
            raise StructuralError(f"Could not read workbook: {e}") from e
    return source.read()


# -- reading ---------------------------------------------------------------


def read_workbook(source: Source, filename: Optional[str] = None, data_only: bool = True) -> Workbook:
    """Open an Excel workbook from a path, bytes or binary stream.

    With ``data_only`` formula cells read as their cached values; without
    it they keep their formulas, which is what gets saved back out.
    """
    extension = file_extension(source, filename)
    if extension not in EXCEL_EXTENSIONS:
        raise UnsupportedFileError(filename or str(source), EXCEL_EXTENSIONS)

    try:
        wb = load_workbook(_as_stream(source), data_only=data_only)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        raise StructuralError(f"Could not read workbook: {e}") from e
    # Saved back out as a plain .xlsx
    wb.template = False
    return wb


def sheet_to_table(ws: Worksheet) -> list[list[Any]]:
    """All rows of *ws* from row 1, column A, as lists of cell values."""
    if ws.max_row == 1 and ws.max_column == 1 and ws.cell(1, 1).value is None:
        return []
    return [list(values) for values in ws.iter_rows(min_row=1, min_col=1, values_only=True)]


def read_csv_table(source: Source) -> list[list[Any]]:
    """Read a CSV file as text cells, header row first."""
    try:
        df = pd.read_csv(_as_stream(source), header=None, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []
    return df.values.tolist()


# -- writing ---------------------------------------------------------------


def apply_result(ws: Worksheet, result: EnrichmentResult, config: Optional[EnrichmentConfig] = None) -> None:
    """Write filled and missing cells of *result* into *ws*.

    Unchanged cells are not touched, so their values and styles survive.
    """
    config = config or EnrichmentConfig()
    highlight = PatternFill(start_color=config.highlight_color, end_color=config.highlight_color, fill_type="solid")

    for outcome in result.outcomes:
        for position, cell_outcome in outcome.cells.items():
            if cell_outcome.kind is OutcomeKind.UNCHANGED:
                continue
            cell = ws.cell(row=outcome.row_number, column=position)
            if cell_outcome.kind is OutcomeKind.FILLED:
                cell.value = cell_outcome.value
            else:
                cell.value = None
                cell.fill = highlight


def format_sheet(ws: Worksheet, config: Optional[EnrichmentConfig] = None) -> None:
    """Style the header, fit column widths and border the used range."""
    config = config or EnrichmentConfig()

    header_fill = PatternFill(start_color=config.header_fill_color, end_color=config.header_fill_color, fill_type="solid")
    bold_font = Font(bold=True)
    centered = Alignment(horizontal="center")
    thin = Side(style="thin", color="000000")
    thin_border = Border(left=thin, right=thin, top=thin, bottom=thin)

    max_row = ws.max_row
    max_col = ws.max_column

    # Header row
    for cell in ws[1]:
        cell.font = bold_font
        cell.fill = header_fill
        cell.alignment = centered

    # Column widths
    for col_idx in range(1, max_col + 1):
        longest = 0
        for row_idx in range(1, max_row + 1):
            value = ws.cell(row=row_idx, column=col_idx).value
            if value is None:
                continue
            longest = max(longest, max(len(line) for line in str(value).splitlines() or [""]))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(longest, 6) + 2, config.max_column_width)

    # Borders
    for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=1, max_col=max_col):
        for cell in row:
            cell.border = thin_border


def table_to_workbook(result: EnrichmentResult, config: Optional[EnrichmentConfig] = None,
                      title: str = "Parts") -> Workbook:
    """Build a fresh, formatted workbook from an enrichment result."""
    wb = Workbook()
    ws = wb.active
    ws.title = title

    ws.append([_excel_value(value) for value in result.header()])
    for row in result.rows():
        ws.append([_excel_value(value) for value in row])

    apply_result(ws, result, config)
    format_sheet(ws, config)
    return wb


def _excel_value(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    return value


def workbook_to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# -- end to end ------------------------------------------------------------


def enrich_file(source: Source,
                url_template: str,
                job: Optional[EnrichmentJob] = None,
                filename: Optional[str] = None) -> tuple[bytes, EnrichmentResult]:
    """Enrich a spreadsheet file and return the processed ``.xlsx`` bytes.

    Args:
        source: Path, bytes or binary stream of an Excel or CSV file
        url_template: Catalog URL containing ``{part_number}``
        job: Job to run (defaults to a new ``EnrichmentJob``)
        filename: Original file name, used for format detection when
            *source* is bytes or a stream

    Returns:
        Tuple of (xlsx bytes, enrichment result)

    Raises:
        UnsupportedFileError: If the file is not a supported format
        StructuralError: If the first sheet has no ``PartNumber`` column
        ConfigurationError: If the URL template is invalid
    """
    job = job or EnrichmentJob()
    extension = file_extension(source, filename)

    if extension in CSV_EXTENSIONS:
        table = read_csv_table(source)
        result = job.run(table, url_template)
        wb = table_to_workbook(result, job.config)
    else:
        # Values drive the lookups; the formula load is what gets saved, so
        # every cell the job does not write keeps its formula
        content = _source_bytes(source)
        load_name = filename or f"workbook{extension}"
        values = read_workbook(content, load_name, data_only=True)
        wb = read_workbook(content, load_name, data_only=False)
        result = job.run(sheet_to_table(values.worksheets[0]), url_template)
        ws = wb.worksheets[0]
        apply_result(ws, result, job.config)
        format_sheet(ws, job.config)

    name = filename or (str(source) if isinstance(source, (str, Path)) else getattr(source, "name", "workbook"))
    logger.info(f"Processed {name}: {result.summary}")
    return workbook_to_bytes(wb), result
