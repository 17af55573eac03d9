import os
import logging
from typing import List

import pandas as pd

from app.models.schemas import Record
from app.services.errors import InputNotFoundError, InputParseError
from app.services.identity import identity_of

logger = logging.getLogger(__name__)

# Columns produced by the Zoom recordings export
RECOGNIZED_FIELDS = [
    "topic",
    "uuid",
    "uuid_base64",
    "meeting_id",
    "host_email",
    "start_time"
]


def load_records(csv_path: str, delimiter: str = ",") -> List[Record]:
    """
    Read the recordings CSV into an ordered list of records.

    Args:
        csv_path: Path to the CSV file
        delimiter: Field separator

    Returns:
        Records in file order, positions starting at 1 (header excluded)

    Raises:
        InputNotFoundError: If the file does not exist
        InputParseError: If the file is empty, malformed, or has no header row
    """
    if not os.path.isfile(csv_path):
        raise InputNotFoundError(csv_path)

    try:
        df = pd.read_csv(
            csv_path,
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig"
        )
    except pd.errors.EmptyDataError:
        raise InputParseError(csv_path, "file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise InputParseError(csv_path, str(e))

    # pandas silently turns a surplus leading field into the index
    if len(df.index) and not isinstance(df.index, pd.RangeIndex):
        raise InputParseError(csv_path, "data rows have more fields than the header row")

    columns = _read_header(csv_path, delimiter)
    _check_header(csv_path, columns)
    df.columns = columns
    df = df.fillna("")

    records = []
    for position, row in enumerate(df.to_dict(orient="records"), start=1):
        values = {column: str(value).strip() for column, value in row.items()}
        records.append(Record(position=position, row=values, identity=identity_of(values)))

    logger.info(f"Read CSV file with {len(records)} rows")
    return records


def _read_header(csv_path: str, delimiter: str) -> List[str]:
    """Header names as written in the file, before pandas fills in or renames any."""
    header = pd.read_csv(
        csv_path,
        sep=delimiter,
        header=None,
        nrows=1,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8-sig"
    )
    return [str(name).strip() for name in header.iloc[0].tolist()]


def _check_header(csv_path: str, columns: List[str]) -> None:
    """Reject blank or repeated header names, and headerless files."""
    if any(not column for column in columns):
        raise InputParseError(csv_path, "header row has a blank column name")

    seen = set()
    for column in columns:
        if column in seen:
            raise InputParseError(csv_path, f"duplicate column '{column}' in header row")
        seen.add(column)

    if not any(column in RECOGNIZED_FIELDS for column in columns):
        raise InputParseError(
            csv_path,
            f"header row has none of the expected columns ({', '.join(RECOGNIZED_FIELDS)})"
        )
