"""String similarity and record shape validation."""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union
import re
from config.models import InvalidRecordError, Record

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


class StringValidator:
    """
    Compares strings with the Dice coefficient over character bigrams.

    Whitespace is ignored entirely. Two equal strings score 1.0, and
    that includes two empty strings: records that both lack a
    description or an area get the full weight for that field. Any
    other string shorter than two characters has no bigrams and scores
    0.0. The score is symmetric and always within [0, 1].

    Scores are cached per instance, up to MAX_CACHE_SIZE pairs.
    """

    MAX_CACHE_SIZE = 10000

    def __init__(self):
        """Initialize validator with caching."""
        self._similarity_cache: Dict[Tuple[str, str], float] = {}

    def calculate_similarity(self, s1: str, s2: str) -> float:
        """
        Calculate similarity between two strings.

        Args:
            s1: First string
            s2: Second string

        Returns:
            float: Similarity score between 0 and 1
        """
        if not isinstance(s1, str) or not isinstance(s2, str):
            return 0.0

        cache_key = (s1, s2)
        if cache_key in self._similarity_cache:
            return self._similarity_cache[cache_key]

        similarity = self._dice_coefficient(s1, s2)
        if len(self._similarity_cache) < self.MAX_CACHE_SIZE:
            self._similarity_cache[cache_key] = similarity
        return similarity

    @staticmethod
    def _dice_coefficient(s1: str, s2: str) -> float:
        first = _WHITESPACE_RE.sub('', s1)
        second = _WHITESPACE_RE.sub('', s2)

        if first == second:
            return 1.0
        if len(first) < 2 or len(second) < 2:
            return 0.0

        first_bigrams = _bigrams(first)
        second_bigrams = _bigrams(second)
        intersection = sum((first_bigrams & second_bigrams).values())

        return 2.0 * intersection / (len(first) + len(second) - 2)


RecordInput = Union[Record, Mapping[str, Any]]


class RecordValidator:
    """Turns a raw collection into Records, skipping malformed entries."""

    def validate(self, item: RecordInput) -> Record:
        """
        Validate a single entry.

        Args:
            item: A Record or a mapping with id/name/description/area keys

        Returns:
            Record: The validated record

        Raises:
            InvalidRecordError: If the entry is missing an id or a name
        """
        if isinstance(item, Record):
            if item.id is None:
                raise InvalidRecordError(f"Record has no id: {item!r}")
            if not isinstance(item.name, str) or not item.name.strip():
                raise InvalidRecordError(f"Record {item.id!r} has no usable name")
            return item

        if isinstance(item, Mapping):
            return Record.from_mapping(item)

        raise InvalidRecordError(
            f"Expected a Record or mapping, got {type(item).__name__}"
        )

    def validate_collection(
        self,
        items: Iterable[RecordInput],
        label: str = 'collection'
    ) -> Tuple[List[Record], int]:
        """
        Validate every entry of a collection.

        Args:
            items: Entries to validate
            label: Collection name used in log messages

        Returns:
            Tuple[List[Record], int]: Valid records in input order and the
            number of skipped entries
        """
        records = []
        skipped = 0

        for position, item in enumerate(items):
            try:
                records.append(self.validate(item))
            except InvalidRecordError as e:
                skipped += 1
                logger.warning(f"Skipping entry {position} of {label}: {e}")

        return records, skipped
