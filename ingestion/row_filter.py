"""
Selection of rows newer than the watermark
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from ingestion.dates import NO_DATE, DateNormalizer


@dataclass
class FilterOutcome:
    rows: List[List[str]] = field(default_factory=list)
    undated_dropped: int = 0  # rows without a usable date excluded by a non-zero watermark


class RowFilter:
    """
    Keep rows whose date is strictly greater than the watermark.

    Pure and order-preserving. A missing or unparseable date normalizes to
    NO_DATE, which is admitted only while the watermark itself is NO_DATE
    (empty destination table).
    """

    def __init__(self, normalizer: DateNormalizer):
        self.normalizer = normalizer

    def select(self, batch: Sequence[Sequence[str]], column_index: int, watermark: int) -> FilterOutcome:
        outcome = FilterOutcome()
        bootstrap = watermark == NO_DATE
        for row in batch:
            cell = row[column_index] if column_index < len(row) else None
            date_key = self.normalizer.normalize(cell)
            if bootstrap or date_key > watermark:
                outcome.rows.append(list(row))
            elif date_key == NO_DATE:
                outcome.undated_dropped += 1
        return outcome


def filter_new_rows(
    batch: Sequence[Sequence[str]],
    column_index: int,
    watermark: int,
    normalizer: DateNormalizer,
) -> List[List[str]]:
    """Rows of ``batch`` newer than ``watermark``, in their original order"""
    return RowFilter(normalizer).select(batch, column_index, watermark).rows
