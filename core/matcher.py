"""Main catalog matching engine."""

from typing import Dict, List, Optional, Sequence, Set, Tuple, Iterable
import pandas as pd
import logging
import time

from core.preprocessor import BasePreprocessor, PreprocessorRegistry, registry
from core.validator import RecordInput, RecordValidator, StringValidator
from config.models import (
    DEFAULT_STRATEGY,
    Match,
    MatchResult,
    MatchStrategy,
    Record,
)

RECORD_COLUMNS = ('id', 'name', 'description', 'area')


class RecordMatcher:
    """
    Pairs records of two catalogs 1:1 by weighted text similarity.

    Records of collection A are processed in iteration order. Each one
    is scored against every record of collection B and its best
    candidate at or above the strategy threshold is claimed, unless an
    earlier record of A already claimed it. There is no fallback to the
    second-best candidate, so the pairing is greedy rather than globally
    optimal. The matcher keeps no state between calls.
    """

    def __init__(
        self,
        strategy: MatchStrategy = DEFAULT_STRATEGY,
        preprocessor_registry: Optional[PreprocessorRegistry] = None
    ):
        """
        Initialize the record matcher.

        Args:
            strategy: Field weights and threshold to match with
            preprocessor_registry: Registry to resolve field preprocessors
                from (the global registry when omitted)
        """
        self.strategy = strategy
        self.preprocessor_registry = (
            preprocessor_registry if preprocessor_registry is not None else registry
        )
        self.string_validator = StringValidator()
        self.record_validator = RecordValidator()

        self.preprocessors: Dict[str, BasePreprocessor] = {
            field_config.name: self.preprocessor_registry.create(
                field_config.preprocess_method
            )
            for field_config in strategy.field_configs
        }

        self._initialize_logging()

    def _initialize_logging(self) -> None:
        """Setup logging configuration."""
        self.logger = logging.getLogger(__name__)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(message)s'
                )
            )
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def _preprocess_record(self, record: Record) -> Tuple[str, ...]:
        """Normalized values of the strategy fields, in strategy order."""
        return tuple(
            self.preprocessors[field_config.name].process(record.get(field_config.name))
            for field_config in self.strategy.field_configs
        )

    def calculate_match_score(
        self,
        values1: Sequence[str],
        values2: Sequence[str]
    ) -> float:
        """
        Calculate the weighted similarity between two preprocessed records.

        Args:
            values1: First record's normalized field values
            values2: Second record's normalized field values

        Returns:
            float: Weighted sum of the per-field similarities
        """
        return sum(
            field_config.weight * self.string_validator.calculate_similarity(val1, val2)
            for field_config, val1, val2 in zip(
                self.strategy.field_configs, values1, values2
            )
        )

    def score_records(self, record_a: Record, record_b: Record) -> float:
        """Composite similarity of two records."""
        return self.calculate_match_score(
            self._preprocess_record(record_a),
            self._preprocess_record(record_b)
        )

    def _find_best_candidate(
        self,
        values: Tuple[str, ...],
        targets: List[Tuple[Record, Tuple[str, ...]]]
    ) -> Tuple[Optional[int], float]:
        """
        Find the highest scoring target at or above the threshold.

        Ties keep the earliest target.

        Returns:
            Tuple[Optional[int], float]: Index into targets (None when no
            target qualifies) and its score
        """
        best_idx = None
        best_similarity = 0.0

        for idx, (_, target_values) in enumerate(targets):
            similarity = self.calculate_match_score(values, target_values)
            if similarity < self.strategy.min_threshold:
                continue
            if best_idx is None or similarity > best_similarity:
                best_idx = idx
                best_similarity = similarity

        return best_idx, best_similarity

    def compute_matches(
        self,
        collection_a: Iterable[RecordInput],
        collection_b: Iterable[RecordInput]
    ) -> MatchResult:
        """
        Match records between two collections.

        Args:
            collection_a: Records (or mappings) processed in iteration order
            collection_b: Records (or mappings) that can be claimed

        Returns:
            MatchResult: Matches plus the unmatched remainder of each side
        """
        start_time = time.time()

        records_a, skipped_a = self.record_validator.validate_collection(
            collection_a, label='collection A'
        )
        records_b, skipped_b = self.record_validator.validate_collection(
            collection_b, label='collection B'
        )

        targets = [
            (record, self._preprocess_record(record))
            for record in records_b
        ]

        matches: List[Match] = []
        matched_a: Set[int] = set()
        claimed_b: Set[int] = set()

        for idx_a, record_a in enumerate(records_a):
            best_idx, best_similarity = self._find_best_candidate(
                self._preprocess_record(record_a), targets
            )

            if best_idx is None:
                continue

            if best_idx in claimed_b:
                self.logger.debug(
                    f"Best candidate {targets[best_idx][0].id!r} for record "
                    f"{record_a.id!r} was already claimed, leaving it unmatched"
                )
                continue

            matches.append(Match(
                record_a=record_a,
                record_b=targets[best_idx][0],
                similarity=best_similarity
            ))
            matched_a.add(idx_a)
            claimed_b.add(best_idx)

        result = MatchResult(
            matches=tuple(matches),
            unmatched_a=tuple(
                record for idx, record in enumerate(records_a)
                if idx not in matched_a
            ),
            unmatched_b=tuple(
                record for idx, record in enumerate(records_b)
                if idx not in claimed_b
            ),
            skipped_a=skipped_a,
            skipped_b=skipped_b
        )

        self.logger.info(
            f"Matched {len(result.matches)} pairs "
            f"({len(result.unmatched_a)} unmatched in A, "
            f"{len(result.unmatched_b)} unmatched in B) "
            f"in {time.time() - start_time:.2f} seconds"
        )

        return result

    def match_dataframes(
        self,
        df_a: pd.DataFrame,
        df_b: pd.DataFrame
    ) -> MatchResult:
        """
        Match records between two dataframes.

        Both dataframes need ``id`` (or ``_id``) and ``name`` columns;
        ``description`` and ``area`` are optional. Empty cells are
        treated as missing values.

        Args:
            df_a: Collection A as a DataFrame
            df_b: Collection B as a DataFrame

        Returns:
            MatchResult: Matches plus the unmatched remainder of each side
        """
        return self.compute_matches(
            self._dataframe_to_mappings(df_a),
            self._dataframe_to_mappings(df_b)
        )

    @staticmethod
    def _dataframe_to_mappings(df: pd.DataFrame) -> List[Dict[str, object]]:
        columns = [
            col for col in df.columns
            if col in RECORD_COLUMNS or col == '_id'
        ]
        subset = df[columns].astype(object).where(df[columns].notna(), None)
        return subset.to_dict(orient='records')


def compute_matches(
    collection_a: Iterable[RecordInput],
    collection_b: Iterable[RecordInput]
) -> MatchResult:
    """Match two collections with the default strategy."""
    return RecordMatcher().compute_matches(collection_a, collection_b)
