"""Memoized matching keyed by the content of both input collections."""

from collections import OrderedDict
from typing import Iterable, List, Mapping, Optional
import logging
import xxhash

from core.matcher import RecordMatcher
from core.validator import RecordInput
from config.models import MatchResult, Record

logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = '\x1f'
_RECORD_SEPARATOR = '\x1e'


def _entry_key(item: RecordInput) -> str:
    if isinstance(item, Record):
        values = (item.id, item.name, item.description, item.area)
    elif not isinstance(item, Mapping):
        values = (repr(item),)
    else:
        values = (
            item.get('id', item.get('_id')),
            item.get('name'),
            item.get('description'),
            item.get('area'),
        )
    return _FIELD_SEPARATOR.join(
        f'{type(v).__name__}:{len(str(v))}:{v}' for v in values
    )


def compute_collections_hash(collection_a: List[RecordInput], collection_b: List[RecordInput]) -> str:
    """Hash both collections' content, order included."""
    digest = xxhash.xxh64()
    for label, collection in (('a', collection_a), ('b', collection_b)):
        digest.update(f'{label}:{len(collection)}:'.encode('utf-8'))
        for item in collection:
            digest.update(_entry_key(item).encode('utf-8'))
            digest.update(_RECORD_SEPARATOR.encode('utf-8'))
    return digest.hexdigest()


class MemoizedMatcher:
    """
    Reuses the last results of a RecordMatcher while inputs are unchanged.

    Results are immutable, so a cached one can be returned as is. Any
    change to either collection produces a new hash and a full
    recomputation.
    """

    def __init__(self, matcher: Optional[RecordMatcher] = None, max_cache_size: int = 32):
        self.matcher = matcher or RecordMatcher()
        self.max_cache_size = max_cache_size
        self._results: 'OrderedDict[str, MatchResult]' = OrderedDict()
        self.hits = 0
        self.misses = 0

    def compute_matches(
        self,
        collection_a: Iterable[RecordInput],
        collection_b: Iterable[RecordInput]
    ) -> MatchResult:
        snapshot_a = list(collection_a)
        snapshot_b = list(collection_b)
        key = compute_collections_hash(snapshot_a, snapshot_b)

        cached = self._results.get(key)
        if cached is not None:
            self.hits += 1
            self._results.move_to_end(key)
            logger.debug(f"Reusing cached match result {key}")
            return cached

        self.misses += 1
        result = self.matcher.compute_matches(snapshot_a, snapshot_b)
        self._results[key] = result
        if len(self._results) > self.max_cache_size:
            self._results.popitem(last=False)
        return result

    def clear(self) -> None:
        self._results.clear()

    def __len__(self) -> int:
        return len(self._results)
