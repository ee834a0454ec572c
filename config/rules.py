"""Filter rules for narrowing record and match lists."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from dataclasses import dataclass, field
import regex as re
from config.models import Match, Record


class RecordRule(ABC):
    """Base class for record selection rules."""

    @abstractmethod
    def accepts(self, record: Record) -> bool:
        """
        Determine if a record should be kept.

        Args:
            record: Record to check

        Returns:
            bool: Whether the record passes the rule
        """
        pass


class SearchTermRule(RecordRule):
    """Keep records whose name contains the term, ignoring case."""

    def __init__(self, term: str):
        self.term = term.lower()

    def accepts(self, record: Record) -> bool:
        return self.term in record.name.lower()


class AreaRule(RecordRule):
    """Keep records from one area. An empty area keeps everything."""

    def __init__(self, area: str):
        self.area = area

    def accepts(self, record: Record) -> bool:
        return self.area == '' or record.area == self.area


class PatternRule(RecordRule):
    """Keep records whose name matches a regex pattern."""

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern, re.IGNORECASE)

    def accepts(self, record: Record) -> bool:
        return bool(self.pattern.search(record.name))


@dataclass
class FilterRules:
    """A set of rules that must all hold for a record to be kept."""

    rules: List[RecordRule] = field(default_factory=list)

    @classmethod
    def from_criteria(
        cls,
        search_term: str = '',
        area: str = '',
        pattern: Optional[str] = None
    ) -> 'FilterRules':
        """Build the rules behind a search box plus area selector."""
        rules: List[RecordRule] = []
        if search_term:
            rules.append(SearchTermRule(search_term))
        if area:
            rules.append(AreaRule(area))
        if pattern:
            rules.append(PatternRule(pattern))
        return cls(rules=rules)

    def accepts(self, record: Record) -> bool:
        return all(rule.accepts(record) for rule in self.rules)

    def accepts_match(self, match: Match) -> bool:
        """
        Determine if a match should be kept.

        Each rule is satisfied when either side of the match satisfies it.
        """
        return all(
            rule.accepts(match.record_a) or rule.accepts(match.record_b)
            for rule in self.rules
        )

    def filter_records(self, records: Iterable[Record]) -> List[Record]:
        return [record for record in records if self.accepts(record)]

    def filter_matches(self, matches: Iterable[Match]) -> List[Match]:
        return [match for match in matches if self.accepts_match(match)]


def distinct_areas(records: Iterable[Record]) -> List[str]:
    """Areas in order of first appearance, without repeats."""
    return list(dict.fromkeys(record.area for record in records))


def distinct_match_areas(matches: Iterable[Match]) -> List[str]:
    """Areas of both sides of each match, in order of first appearance."""
    return list(dict.fromkeys(
        area
        for match in matches
        for area in (match.record_a.area, match.record_b.area)
    ))
