"""CSV text reader shared by all importers.

CSV arrives as text (pasted or read from an upload), so everything goes
through pandas with string dtypes: no type inference, empty cells stay empty
strings and every cell is trimmed. Short rows are padded and long rows are
truncated to the header width.
"""

import csv
import io
import warnings
from typing import List

import pandas as pd

from ..exceptions import CsvImportError

PARSE_ERROR_MESSAGE = "Failed to parse CSV file. Please check the format."

_READ_OPTIONS = dict(
    dtype=str,
    keep_default_na=False,
    skipinitialspace=True,
    skip_blank_lines=True,
    engine="python",
)


def read_csv_frame(text: str) -> pd.DataFrame:
    """Read CSV text with a header row into a DataFrame of trimmed strings.

    Args:
        text: CSV content

    Returns:
        DataFrame whose columns are the trimmed header cells; empty text gives
        an empty DataFrame

    Raises:
        CsvImportError: If the text is not parseable CSV

    Example:
        >>> frame = read_csv_frame('Team Name,Quarter\\n"Platform", Q1 2024\\n')
        >>> frame.loc[0, "Quarter"]
        'Q1 2024'
    """
    if text is None or not text.strip():
        return pd.DataFrame()

    try:
        width = len(pd.read_csv(io.StringIO(text), nrows=0, **_READ_OPTIONS).columns)
        # Long rows are truncated to the header width without a ParserWarning
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            frame = pd.read_csv(
                io.StringIO(text),
                index_col=False,
                on_bad_lines=lambda fields: fields[:width],
                **_READ_OPTIONS,
            )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, csv.Error) as e:
        raise CsvImportError(PARSE_ERROR_MESSAGE) from e

    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.fillna("")
    for column in frame.columns:
        frame[column] = frame[column].astype(str).str.strip()
    return frame


def parse_csv(text: str) -> List[List[str]]:
    """Read CSV text into rows of trimmed cells, header row first.

    Returns:
        List of rows; empty text gives an empty list
    """
    frame = read_csv_frame(text)
    if frame.columns.empty:
        return []
    return [list(frame.columns)] + frame.values.tolist()


def to_csv_text(rows: List[List[object]]) -> str:
    """Write rows as CSV text with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buffer.getvalue()
