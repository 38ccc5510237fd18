"""
Workbook Loader - Read DB export rows into DbRecords.

The DB export is the reference for "what the ERP believes." Rows are
read by the column letters in the config layout; only rows with a
catalog identifier in the identifier column become records.
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Optional

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .config import Config
from .index import is_valid_identifier, normalize_identifier
from .models import IDENTIFIER_KEY, DbRecord

logger = logging.getLogger(__name__)


class WorkbookFormatError(ValueError):
    """Raised when an uploaded file is not a usable DB export."""
    pass


def open_workbook(source: str | Path | bytes) -> Workbook:
    """
    Open a DB export from a path or raw bytes.

    Formatting is preserved (data_only=False) since the same workbook
    is annotated and handed back.
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            return load_workbook(BytesIO(source))
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Workbook not found: {path}")
        return load_workbook(path)
    except FileNotFoundError:
        raise
    except Exception as e:
        raise WorkbookFormatError(f"Cannot read Excel file (is it corrupted or wrong format?): {e}") from e


def first_worksheet(workbook: Workbook) -> Worksheet:
    """Return the first worksheet; the DB export always keeps its data there."""
    if not workbook.worksheets:
        raise WorkbookFormatError("No worksheet found in the Excel file")
    return workbook.worksheets[0]


def _cell_value(ws: Worksheet, row: int, column: Optional[int]) -> Any:
    if column is None:
        return None
    value = ws.cell(row=row, column=column).value
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def load_db_records(ws: Worksheet, config: Config) -> list[DbRecord]:
    """
    Read DB records from the worksheet.

    Args:
        ws: Worksheet holding the DB export
        config: Config with sheet layout and identifier prefix

    Returns:
        One DbRecord per data row with a valid identifier, in row order
    """
    layout = config.layout
    prefix = config.settings.identifier_prefix
    id_column = layout.column_index(IDENTIFIER_KEY)

    value_columns = {
        key: layout.column_index(key)
        for key in layout.columns
        if key != IDENTIFIER_KEY
    }

    records = []
    skipped = 0
    for row in range(layout.first_data_row, ws.max_row + 1):
        raw_id = _cell_value(ws, row, id_column)
        if not is_valid_identifier(raw_id, prefix):
            if raw_id is not None:
                skipped += 1
            continue

        values = {key: _cell_value(ws, row, col) for key, col in value_columns.items()}
        records.append(DbRecord(identifier=normalize_identifier(raw_id), values=values, row=row))

    logger.info(f"Loaded {len(records)} DB records ({skipped} rows without {prefix} identifier)")
    return records
