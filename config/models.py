"""Configuration and data models for the catalog matching system."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import math

RecordId = Union[str, int]


class InvalidRecordError(ValueError):
    """Raised when a catalog entry cannot be turned into a Record."""


def _coerce_text(value: Any) -> str:
    """Return value if it is usable text, otherwise an empty string."""
    if isinstance(value, str):
        return value
    return ''


@dataclass(frozen=True)
class FieldMatchConfig:
    """Configuration for how to compare a single record field."""
    name: str
    weight: float
    preprocess_method: str = 'text'

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(
                f"Weight for field '{self.name}' must be non-negative, got {self.weight}"
            )


@dataclass(frozen=True)
class MatchStrategy:
    """Weighted fields plus the minimum composite score for a match."""
    name: str
    field_configs: Tuple[FieldMatchConfig, ...]
    min_threshold: float = 0.6

    def __post_init__(self):
        """Store field configs as a tuple and validate the threshold."""
        object.__setattr__(self, 'field_configs', tuple(self.field_configs))
        if not 0.0 <= self.min_threshold <= 1.0:
            raise ValueError(
                f"Threshold must be within [0, 1], got {self.min_threshold}"
            )


DEFAULT_STRATEGY = MatchStrategy(
    name='name_description_area',
    field_configs=(
        FieldMatchConfig(name='name', weight=0.5),
        FieldMatchConfig(name='description', weight=0.4),
        FieldMatchConfig(name='area', weight=0.1),
    ),
    min_threshold=0.6,
)


@dataclass(frozen=True)
class Record:
    """One labeled entry from an institution's catalog."""
    id: RecordId
    name: str
    description: str = ''
    area: str = ''

    def get(self, field_name: str) -> str:
        """Return a text field by name, empty string for unknown fields."""
        return _coerce_text(getattr(self, field_name, ''))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'Record':
        """
        Build a Record from a loosely shaped mapping.

        Accepts ``_id`` as an alias for ``id`` since document stores
        commonly use it. Missing or non-string description/area values
        become empty strings.

        Raises:
            InvalidRecordError: If the id is missing or the name is not
                a non-blank string
        """
        record_id = data.get('id', data.get('_id'))
        if record_id is None or (isinstance(record_id, float) and math.isnan(record_id)):
            raise InvalidRecordError(f"Record has no id: {dict(data)!r}")

        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise InvalidRecordError(f"Record {record_id!r} has no usable name")

        return cls(
            id=record_id,
            name=name,
            description=_coerce_text(data.get('description')),
            area=_coerce_text(data.get('area')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'area': self.area,
        }


@dataclass(frozen=True)
class Match:
    """A claimed 1:1 pairing between one record of each collection."""
    record_a: Record
    record_b: Record
    similarity: float


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one full matching pass over two collections."""
    matches: Tuple[Match, ...] = ()
    unmatched_a: Tuple[Record, ...] = ()
    unmatched_b: Tuple[Record, ...] = ()
    skipped_a: int = 0
    skipped_b: int = 0


@dataclass(frozen=True)
class MatchStatistics:
    """Aggregate duplicate/unique counts for a MatchResult."""
    total_a: int
    total_b: int
    duplicated_a: int
    duplicated_b: int
    unique_a: int
    unique_b: int
    duplicated_total: int
    unique_total: int
    duplicate_percentage: float
    unique_percentage: float
    average_similarity: Optional[float] = None

    @property
    def total(self) -> int:
        return self.total_a + self.total_b


@dataclass
class AreaBreakdown:
    """Duplicate/unique counts for one area label."""
    area: str
    duplicated_a: int = 0
    unique_a: int = 0
    duplicated_b: int = 0
    unique_b: int = 0

    @property
    def total(self) -> int:
        return self.duplicated_a + self.unique_a + self.duplicated_b + self.unique_b
