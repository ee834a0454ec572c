"""Duplicate/unique statistics over match results."""

from typing import List
import numpy as np
import pandas as pd
import logging
from config.models import AreaBreakdown, MatchResult, MatchStatistics

logger = logging.getLogger(__name__)

PERCENTAGE_DECIMALS = 2


def _percentage(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(count / total * 100, PERCENTAGE_DECIMALS)


def summarize(result: MatchResult) -> MatchStatistics:
    """
    Count duplicated and unique records on each side of a result.

    A record is duplicated when it takes part in a match and unique
    otherwise. Percentages are relative to both collections combined.

    Args:
        result: Result of a matching pass

    Returns:
        MatchStatistics: Counts and percentages
    """
    duplicated_a = len(result.matches)
    duplicated_b = len(result.matches)
    unique_a = len(result.unmatched_a)
    unique_b = len(result.unmatched_b)

    duplicated_total = duplicated_a + duplicated_b
    unique_total = unique_a + unique_b
    total = duplicated_total + unique_total

    similarities = np.array([m.similarity for m in result.matches], dtype=float)
    average_similarity = float(similarities.mean()) if similarities.size else None

    return MatchStatistics(
        total_a=duplicated_a + unique_a,
        total_b=duplicated_b + unique_b,
        duplicated_a=duplicated_a,
        duplicated_b=duplicated_b,
        unique_a=unique_a,
        unique_b=unique_b,
        duplicated_total=duplicated_total,
        unique_total=unique_total,
        duplicate_percentage=_percentage(duplicated_total, total),
        unique_percentage=_percentage(unique_total, total),
        average_similarity=average_similarity
    )


def _status_frame(result: MatchResult) -> pd.DataFrame:
    """One row per record: area, collection and whether it is duplicated."""
    rows = []
    for match in result.matches:
        rows.append({'area': match.record_a.area, 'column': 'duplicated_a'})
        rows.append({'area': match.record_b.area, 'column': 'duplicated_b'})
    rows.extend({'area': r.area, 'column': 'unique_a'} for r in result.unmatched_a)
    rows.extend({'area': r.area, 'column': 'unique_b'} for r in result.unmatched_b)
    return pd.DataFrame(rows, columns=['area', 'column'])


def area_breakdown(result: MatchResult) -> List[AreaBreakdown]:
    """
    Duplicate/unique counts grouped by the records' own area label.

    Areas are reported as written in the records (not normalized) and
    sorted alphabetically; records without an area are grouped under ''.
    """
    frame = _status_frame(result)
    if frame.empty:
        return []

    counts = (
        frame.groupby(['area', 'column'])
        .size()
        .unstack(fill_value=0)
        .reindex(
            columns=['duplicated_a', 'unique_a', 'duplicated_b', 'unique_b'],
            fill_value=0
        )
        .sort_index()
    )

    breakdown = [
        AreaBreakdown(
            area=area,
            duplicated_a=int(row['duplicated_a']),
            unique_a=int(row['unique_a']),
            duplicated_b=int(row['duplicated_b']),
            unique_b=int(row['unique_b'])
        )
        for area, row in counts.iterrows()
    ]

    logger.debug(f"Computed breakdown for {len(breakdown)} areas")
    return breakdown
