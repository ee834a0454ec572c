"""Example usage of the catalog matcher with Excel files."""

import pandas as pd
import logging
from pathlib import Path
from typing import Optional

from config.models import FieldMatchConfig, MatchResult, MatchStrategy
from config.rules import FilterRules
from core import analyzer, exporter, matcher


def create_catalog_matcher(threshold: float = 0.6) -> matcher.RecordMatcher:
    """
    Create a matcher configured for function/service catalogs.

    Args:
        threshold: Minimum composite similarity for a match

    Returns:
        RecordMatcher: Configured matcher instance
    """
    strategy = MatchStrategy(
        name='catalog',
        field_configs=(
            FieldMatchConfig(name='name', weight=0.5),
            FieldMatchConfig(name='description', weight=0.4),
            FieldMatchConfig(name='area', weight=0.1),
        ),
        min_threshold=threshold
    )
    return matcher.RecordMatcher(strategy=strategy)


def match_excel_files(
    functions_file: Path,
    services_file: Path,
    output_file: Optional[Path] = None,
    area: str = ''
) -> MatchResult:
    """
    Match function records against service records from two Excel files.

    Args:
        functions_file: Path to the functions workbook
        services_file: Path to the services workbook
        output_file: Optional path for the output workbook
        area: Only log matches touching this area ('' for all)

    Returns:
        MatchResult: Matching result
    """
    try:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s'
        )

        catalog_matcher = create_catalog_matcher()

        logging.info(f"Reading functions file: {functions_file}")
        df1 = pd.read_excel(functions_file, dtype={'name': str, 'description': str, 'area': str})

        logging.info(f"Reading services file: {services_file}")
        df2 = pd.read_excel(services_file, dtype={'name': str, 'description': str, 'area': str})

        logging.info("Starting matching process...")
        result = catalog_matcher.match_dataframes(df1, df2)

        if result.skipped_a or result.skipped_b:
            logging.warning(
                f"Skipped {result.skipped_a} functions and "
                f"{result.skipped_b} services with missing id or name"
            )

        stats = analyzer.summarize(result)
        logging.info("\nMatching Statistics:")
        logging.info(f"Functions: {stats.total_a}, services: {stats.total_b}")
        logging.info(
            f"Duplicated: {stats.duplicated_total} ({stats.duplicate_percentage:.2f}%)"
        )
        logging.info(f"Unique: {stats.unique_total} ({stats.unique_percentage:.2f}%)")

        logging.info("\nArea Breakdown:")
        for entry in analyzer.area_breakdown(result):
            logging.info(
                f"{entry.area or '(none)'}: "
                f"{entry.duplicated_a + entry.duplicated_b} duplicated, "
                f"{entry.unique_a + entry.unique_b} unique"
            )

        rules = FilterRules.from_criteria(area=area)
        for match in rules.filter_matches(result.matches):
            logging.info(
                f"{match.record_a.name} <-> {match.record_b.name}: "
                f"{match.similarity * 100:.2f}%"
            )

        if output_file:
            logging.info(f"\nSaving results to: {output_file}")
            exporter.export_to_excel(
                result, output_file, label_a='functions', label_b='services'
            )

        return result

    except Exception as e:
        logging.error(f"An error occurred: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    functions_file = Path('data/functions.xlsx')
    services_file = Path('data/services.xlsx')
    output_file = Path('data/duplicates.xlsx')

    match_excel_files(
        functions_file=functions_file,
        services_file=services_file,
        output_file=output_file
    )
