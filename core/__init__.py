"""
Catalog Matcher
===============

Finds duplicated entries between two institutions' catalogs of functions
and services by fuzzy-matching their names, descriptions and areas.

Key Features:
- Accent, case and punctuation insensitive text normalization
- Weighted bigram similarity over name, description and area
- Greedy 1:1 pairing above a configurable threshold
- Memoized recomputation keyed by input content
- Duplicate statistics and Excel export
"""

from core.matcher import RecordMatcher, compute_matches
from core.preprocessor import normalize
from core.cache import MemoizedMatcher

from config.models import (
    DEFAULT_STRATEGY,
    FieldMatchConfig,
    InvalidRecordError,
    Match,
    MatchResult,
    MatchStrategy,
    Record
)
from config.rules import FilterRules

__version__ = "1.0.0"
