"""Tabular export of match results."""

from dataclasses import asdict
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterable, Union, BinaryIO
import pandas as pd
import logging

from core.analyzer import summarize
from config.models import Match, MatchResult, MatchStatistics, Record

logger = logging.getLogger(__name__)

RECORD_COLUMNS = ['id', 'name', 'description', 'area']
MATCH_COLUMNS = (
    [f'{col}_a' for col in RECORD_COLUMNS]
    + [f'{col}_b' for col in RECORD_COLUMNS]
    + ['similarity']
)


def records_to_dataframe(records: Iterable[Record]) -> pd.DataFrame:
    return pd.DataFrame(
        [record.to_dict() for record in records],
        columns=RECORD_COLUMNS
    )


def _match_row(match: Match) -> Dict[str, Any]:
    row = {f'{key}_a': value for key, value in match.record_a.to_dict().items()}
    row.update({f'{key}_b': value for key, value in match.record_b.to_dict().items()})
    row['similarity'] = match.similarity
    return row


def matches_to_dataframe(matches: Iterable[Match]) -> pd.DataFrame:
    """One row per match with both records side by side and the raw score."""
    df = pd.DataFrame([_match_row(m) for m in matches], columns=MATCH_COLUMNS)
    return df.astype({'similarity': float})


def statistics_to_dataframe(stats: MatchStatistics) -> pd.DataFrame:
    """Two-column metric/value table of the statistics."""
    return pd.DataFrame(
        list(asdict(stats).items()),
        columns=['metric', 'value']
    )


def result_to_dict(result: MatchResult) -> Dict[str, Any]:
    """
    Convert a result to plain Python structures ready for JSON.

    Similarity values are kept as unrounded floats.
    """
    return {
        'matches': [
            {
                'record_a': m.record_a.to_dict(),
                'record_b': m.record_b.to_dict(),
                'similarity': float(m.similarity),
            }
            for m in result.matches
        ],
        'unmatched_a': [r.to_dict() for r in result.unmatched_a],
        'unmatched_b': [r.to_dict() for r in result.unmatched_b],
        'skipped_a': result.skipped_a,
        'skipped_b': result.skipped_b,
    }


def export_to_excel(
    result: MatchResult,
    output: Union[str, Path, BinaryIO],
    label_a: str = 'A',
    label_b: str = 'B'
) -> None:
    """
    Write a result to an Excel workbook.

    Sheets: ``matches``, ``unmatched_a``, ``unmatched_b`` and ``summary``.
    The similarity column is stored as a float and only displayed as a
    percentage through the cell format.

    Args:
        result: Result to export
        output: Destination path or binary file object
        label_a: Name of collection A, used in the summary sheet
        label_b: Name of collection B, used in the summary sheet
    """
    matches_df = matches_to_dataframe(result.matches)
    summary_df = statistics_to_dataframe(summarize(result))
    summary_df = pd.concat([
        pd.DataFrame(
            [['collection_a', label_a], ['collection_b', label_b]],
            columns=['metric', 'value']
        ),
        summary_df
    ], ignore_index=True)

    with pd.ExcelWriter(
        output,
        engine='xlsxwriter',
        engine_kwargs={'options': {'strings_to_urls': False}}
    ) as writer:
        matches_df.to_excel(writer, sheet_name='matches', index=False)
        records_to_dataframe(result.unmatched_a).to_excel(
            writer, sheet_name='unmatched_a', index=False
        )
        records_to_dataframe(result.unmatched_b).to_excel(
            writer, sheet_name='unmatched_b', index=False
        )
        summary_df.to_excel(writer, sheet_name='summary', index=False)

        percent_format = writer.book.add_format({'num_format': '0.00%'})
        similarity_col = MATCH_COLUMNS.index('similarity')
        writer.sheets['matches'].set_column(
            similarity_col, similarity_col, 12, percent_format
        )

    logger.info(
        f"Exported {len(result.matches)} matches, "
        f"{len(result.unmatched_a)} unmatched in {label_a} and "
        f"{len(result.unmatched_b)} unmatched in {label_b}"
    )


def export_to_excel_bytes(result: MatchResult, **kwargs: Any) -> bytes:
    """Same as export_to_excel but returns the workbook as bytes."""
    output = BytesIO()
    export_to_excel(result, output, **kwargs)
    return output.getvalue()
