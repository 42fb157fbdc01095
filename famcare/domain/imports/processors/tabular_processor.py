"""
Read uploaded registration sheets into canonical row mappings.

Text files (.csv/.txt) and workbooks (.xlsx/.xls) both end up as a lazy
sequence of ``{Column: str}`` rows holding only FAMILY and MEMBER records.
Dispatch is by file extension only.
"""
import io
import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

import pandas as pd

from famcare.domain.imports.columns import Column, canonical_column, record_type_of
from famcare.domain.imports.errors import EmptyImportError, ParseError

logger = logging.getLogger(__name__)

Row = Dict[Column, str]

TEXT_EXTENSIONS = (".csv", ".txt")
WORKBOOK_EXTENSIONS = (".xlsx", ".xls")
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS + WORKBOOK_EXTENSIONS

# Spreadsheet exports on Windows machines are usually cp1252.
_TEXT_ENCODINGS = ("utf-8-sig", "cp1252")


def detect_file_kind(file_name: str) -> str:
    """
    Decide how to read a file from its extension.

    Returns:
        'text' or 'workbook'

    Raises:
        ParseError: If the extension is not supported
    """
    extension = os.path.splitext(file_name or "")[1].lower()
    if extension in TEXT_EXTENSIONS:
        return "text"
    if extension in WORKBOOK_EXTENSIONS:
        return "workbook"
    raise ParseError(
        file_name,
        f"Unsupported file type '{extension or file_name}'. Use one of: {', '.join(SUPPORTED_EXTENSIONS)}",
    )


def _decode_text(file_content: bytes, file_name: Optional[str]) -> str:
    for encoding in _TEXT_ENCODINGS:
        try:
            return file_content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ParseError(file_name, f"Could not decode '{file_name}' as text.")


def _canonical_header(headers: Sequence[object]) -> List[Optional[Column]]:
    columns = [canonical_column(header) for header in headers]
    ignored = [str(header).strip() for header, column in zip(headers, columns) if column is None]
    if ignored:
        logger.info("Ignoring unrecognised columns: %s", ignored)
    return columns


def _to_row(columns: Sequence[Optional[Column]], values: Sequence[object]) -> Row:
    row: Row = {}
    for index, column in enumerate(columns):
        if column is None or column in row:
            continue
        value = values[index] if index < len(values) else ""
        row[column] = "" if value is None else str(value).strip()
    return row


def _retain_records(rows: Iterable[Row], file_name: Optional[str]) -> Iterator[Row]:
    """Yield only FAMILY/MEMBER rows; raise EmptyImportError if none survive."""
    retained = 0
    dropped = 0
    for row in rows:
        if record_type_of(row.get(Column.RECORD_TYPE)) is None:
            dropped += 1
            continue
        retained += 1
        yield row

    logger.info("Parsed '%s': %d record rows kept, %d other rows dropped", file_name, retained, dropped)
    if retained == 0:
        raise EmptyImportError(file_name)


def _text_rows(text: str) -> Iterator[Row]:
    lines = [line.rstrip("\r") for line in text.split("\n") if line.strip()]
    if not lines:
        return

    delimiter = "\t" if "\t" in lines[0] else ","
    # Lines are split independently and quotes are kept as literal text.
    columns = _canonical_header(lines[0].split(delimiter))
    for line in lines[1:]:
        yield _to_row(columns, line.split(delimiter))


def parse_text(file_content: bytes, file_name: Optional[str] = None) -> Iterator[Row]:
    """
    Parse delimited text. The delimiter is a tab when the header line contains
    one and a comma otherwise; missing trailing values read as ''.
    """
    text = _decode_text(file_content, file_name)
    return _retain_records(_text_rows(text), file_name)


def _read_first_sheet(file_content: bytes, file_name: Optional[str]) -> pd.DataFrame:
    extension = os.path.splitext(file_name or "")[1].lower()
    engine = "xlrd" if extension == ".xls" else "openpyxl"
    try:
        return pd.read_excel(
            io.BytesIO(file_content),
            sheet_name=0,
            dtype=str,
            keep_default_na=False,
            engine=engine,
        )
    except Exception as e:
        logger.error("Could not read workbook '%s': %s", file_name, e)
        raise ParseError(
            file_name,
            f"Could not read Excel file '{file_name}'. Check that the file format is correct.",
        ) from e


def _workbook_rows(df: pd.DataFrame) -> Iterator[Row]:
    columns = _canonical_header(list(df.columns))
    for values in df.itertuples(index=False, name=None):
        yield _to_row(columns, ["" if pd.isna(value) else value for value in values])


def parse_workbook(file_content: bytes, file_name: Optional[str] = None) -> Iterator[Row]:
    """Parse the first sheet of a workbook; other sheets are ignored."""
    df = _read_first_sheet(file_content, file_name)
    return _retain_records(_workbook_rows(df), file_name)


def parse_file(file_name: str, file_content: bytes) -> Iterator[Row]:
    """Parse an uploaded file into FAMILY/MEMBER rows, choosing the reader by extension."""
    if detect_file_kind(file_name) == "workbook":
        return parse_workbook(file_content, file_name)
    return parse_text(file_content, file_name)
