"""
CSV decoding and tokenizing for periodic exports
"""

import csv
import io
import logging
from typing import List, Union

from core.exceptions import CSVParseError, ShortFileError

logger = logging.getLogger(__name__)


def decode_content(content: Union[bytes, str], encoding: str = "utf-8-sig") -> str:
    """Decode file content fetched from a file store"""
    if isinstance(content, str):
        return content
    try:
        return content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise CSVParseError(
            "Failed to decode file content",
            context={"encoding": encoding, "size_bytes": len(content)},
            original_exception=e
        )


def parse_csv(text: str) -> List[List[str]]:
    """
    Tokenize CSV text into rows of string cells.

    Rows may have different widths. Blank lines are skipped.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=False)
    rows: List[List[str]] = []
    try:
        for row in reader:
            if not row:
                continue
            rows.append(row)
    except csv.Error as e:
        raise CSVParseError(
            "Failed to parse CSV content",
            context={"line_number": reader.line_num},
            original_exception=e
        )
    return rows


def strip_metadata_rows(rows: List[List[str]], count: int) -> List[List[str]]:
    """
    Drop ``count`` leading non-tabular rows.

    Raises:
        ShortFileError: If the file has no rows left after dropping them
    """
    if len(rows) <= count:
        raise ShortFileError(
            "File too short",
            context={"rows": len(rows), "metadata_rows": count}
        )
    return rows[count:]
