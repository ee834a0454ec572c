"""Tests for the matching engine."""

import numpy as np
import pandas as pd
import pytest

from config.models import (
    DEFAULT_STRATEGY,
    FieldMatchConfig,
    MatchResult,
    MatchStrategy,
    Record,
)
from core.matcher import RecordMatcher, compute_matches
from core.preprocessor import BasePreprocessor, register_preprocessor, registry


VACCINATION = dict(
    name="Vacunación infantil",
    description="Aplicación de vacunas a niños",
    area="Salud",
)
SCHOOL_VACCINATION = dict(
    name="Vacunacion infantil escolar",
    description="Aplicacion de vacunas a ninos en escuelas",
    area="Salud",
)


def assert_result_invariants(result: MatchResult, size_a: int, size_b: int):
    ids_a = [m.record_a.id for m in result.matches]
    ids_b = [m.record_b.id for m in result.matches]
    assert len(ids_a) == len(set(ids_a))
    assert len(ids_b) == len(set(ids_b))
    assert len(result.matches) + len(result.unmatched_a) + result.skipped_a == size_a
    assert len(result.matches) + len(result.unmatched_b) + result.skipped_b == size_b
    assert all(m.similarity >= DEFAULT_STRATEGY.min_threshold for m in result.matches)
    assert all(0.0 <= m.similarity <= 1.0 + 1e-9 for m in result.matches)


class TestComputeMatches:
    """Test pairing of two collections."""

    def test_near_duplicates_with_accents_match(self):
        a = [Record(id=1, name="Atención a población vulnerable",
                    description="Brinda apoyo social", area="Salud")]
        b = [Record(id=9, name="Atencion poblacion vulnerable",
                    description="Brinda apoyo social a vulnerables", area="Salud")]

        result = compute_matches(a, b)

        assert len(result.matches) == 1
        assert result.matches[0].record_a.id == 1
        assert result.matches[0].record_b.id == 9
        assert result.matches[0].similarity >= 0.6
        assert result.unmatched_a == ()
        assert result.unmatched_b == ()

    def test_unrelated_records_do_not_match(self):
        a = [Record(id=1, name="Recolección de basura", description="", area="Limpia")]
        b = [Record(id=2, name="Vacunación infantil", description="", area="Salud")]

        result = compute_matches(a, b)

        assert result.matches == ()
        assert result.unmatched_a == tuple(a)
        assert result.unmatched_b == tuple(b)

    def test_earlier_record_claims_even_when_later_scores_higher(self):
        a = [
            Record(id='a1', **SCHOOL_VACCINATION),
            Record(id='a2', **VACCINATION),
        ]
        b = [Record(id='b1', **VACCINATION)]

        result = compute_matches(a, b)

        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [('a1', 'b1')]
        assert result.matches[0].similarity < 1.0
        assert [r.id for r in result.unmatched_a] == ['a2']
        assert result.unmatched_b == ()

    def test_no_fallback_to_second_best_candidate(self):
        a = [
            Record(id='a1', **VACCINATION),
            Record(id='a2', **VACCINATION),
        ]
        b = [
            Record(id='b1', **VACCINATION),
            Record(id='b2', **SCHOOL_VACCINATION),
        ]

        result = compute_matches(a, b)

        # a2 also clears the threshold against b2, but its best candidate
        # b1 is taken by a1
        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [('a1', 'b1')]
        assert [r.id for r in result.unmatched_a] == ['a2']
        assert [r.id for r in result.unmatched_b] == ['b2']

    def test_ties_go_to_earliest_candidate(self):
        a = [Record(id='a1', **VACCINATION)]
        b = [Record(id='b1', **VACCINATION), Record(id='b2', **VACCINATION)]

        result = compute_matches(a, b)

        assert result.matches[0].record_b.id == 'b1'
        assert [r.id for r in result.unmatched_b] == ['b2']

    def test_identical_records_score_one(self):
        result = compute_matches([Record(id=1, **VACCINATION)], [Record(id=2, **VACCINATION)])
        assert result.matches[0].similarity == pytest.approx(1.0)

    def test_fixture_catalogs(self, functions, services):
        result = compute_matches(functions, services)

        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [(1, 9), (3, 11)]
        assert [r.id for r in result.unmatched_a] == [2]
        assert [r.id for r in result.unmatched_b] == [10]
        assert_result_invariants(result, len(functions), len(services))

    def test_is_idempotent(self, matcher, functions, services):
        first = matcher.compute_matches(functions, services)
        second = matcher.compute_matches(functions, services)
        assert first == second

    @pytest.mark.parametrize('size_a,size_b', [(0, 0), (0, 3), (3, 0)])
    def test_empty_collections(self, functions, services, size_a, size_b):
        result = compute_matches(functions[:size_a], services[:size_b])

        assert result.matches == ()
        assert result.unmatched_a == tuple(functions[:size_a])
        assert result.unmatched_b == tuple(services[:size_b])

    def test_empty_inputs_give_empty_result(self):
        assert compute_matches([], []) == MatchResult()

    def test_area_less_records_get_full_area_weight(self, matcher):
        with_area = Record(id=1, name="Alumbrado publico", area="Obras")
        score_mixed = matcher.score_records(with_area, Record(id=2, name="Alumbrado publico"))
        score_empty = matcher.score_records(
            Record(id=3, name="Alumbrado publico"), Record(id=4, name="Alumbrado publico")
        )
        assert score_empty == pytest.approx(1.0)
        assert score_mixed == pytest.approx(0.9)

    def test_accepts_mappings_and_skips_malformed_entries(self, caplog):
        a = [
            {'_id': 'x1', 'name': 'Vacunación infantil',
             'description': 'Aplicación de vacunas a niños', 'area': 'Salud'},
            {'_id': 'x2', 'description': 'sin nombre'},
        ]
        b = [
            {'id': 'y1', 'name': 'Vacunacion infantil',
             'description': 'Aplicacion de vacunas a ninos', 'area': None},
            {'name': 'sin id'},
        ]

        with caplog.at_level('WARNING'):
            result = compute_matches(a, b)

        assert result.skipped_a == 1
        assert result.skipped_b == 1
        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [('x1', 'y1')]
        assert_result_invariants(result, len(a), len(b))
        assert 'Skipping entry 1 of collection A' in caplog.text

    def test_non_string_optional_fields_are_treated_as_empty(self, matcher):
        a = [Record(id=1, name="Alumbrado publico", description=None, area=12)]
        b = [Record(id=2, name="Alumbrado publico", description="", area="")]

        result = matcher.compute_matches(a, b)

        assert result.matches[0].similarity == pytest.approx(1.0)

    def test_does_not_mutate_inputs(self, functions, services):
        a, b = list(functions), list(services)
        compute_matches(a, b)
        assert a == functions
        assert b == services

    def test_accepts_generators(self, functions, services):
        result = compute_matches(iter(functions), (s for s in services))
        assert len(result.matches) == 2


class TestMatchStrategy:
    """Test strategy configuration."""

    def test_default_weights_and_threshold(self):
        weights = {fc.name: fc.weight for fc in DEFAULT_STRATEGY.field_configs}
        assert weights == {'name': 0.5, 'description': 0.4, 'area': 0.1}
        assert DEFAULT_STRATEGY.min_threshold == 0.6

    def test_higher_threshold_rejects_partial_matches(self):
        strict = MatchStrategy(
            name='strict',
            field_configs=DEFAULT_STRATEGY.field_configs,
            min_threshold=0.9
        )
        a = [Record(id=1, name="Atención a población vulnerable",
                    description="Brinda apoyo social", area="Salud")]
        b = [Record(id=9, name="Atencion poblacion vulnerable",
                    description="Brinda apoyo social a vulnerables", area="Salud")]

        assert RecordMatcher(strict).compute_matches(a, b).matches == ()
        assert len(RecordMatcher().compute_matches(a, b).matches) == 1

    def test_name_only_strategy(self):
        strategy = MatchStrategy(
            name='name_only',
            field_configs=[FieldMatchConfig(name='name', weight=1.0)],
        )
        a = [Record(id=1, name="Bacheo", description="Reparación de calles")]
        b = [Record(id=2, name="bacheo!", description="Otra cosa por completo")]

        result = RecordMatcher(strategy).compute_matches(a, b)

        assert result.matches[0].similarity == pytest.approx(1.0)

    @pytest.mark.parametrize('threshold', [-0.1, 1.5])
    def test_threshold_out_of_range_raises(self, threshold):
        with pytest.raises(ValueError):
            MatchStrategy(name='bad', field_configs=(), min_threshold=threshold)

    def test_negative_weight_raises(self):
        with pytest.raises(ValueError):
            FieldMatchConfig(name='name', weight=-1)

    def test_unknown_preprocessor_raises(self):
        strategy = MatchStrategy(
            name='bad',
            field_configs=(FieldMatchConfig(name='name', weight=1.0, preprocess_method='nope'),)
        )
        with pytest.raises(ValueError, match="Unknown preprocessor type"):
            RecordMatcher(strategy)

    def test_globally_registered_preprocessor_is_used(self, monkeypatch):
        class InitialsPreprocessor(BasePreprocessor):
            def process(self, value):
                if self._handle_null(value):
                    return ''
                return ''.join(word[0] for word in value.lower().split())

        monkeypatch.setattr(registry, '_preprocessors', dict(registry._preprocessors))
        register_preprocessor('initials', InitialsPreprocessor)

        strategy = MatchStrategy(
            name='initials',
            field_configs=(
                FieldMatchConfig(name='name', weight=1.0, preprocess_method='initials'),
            ),
        )
        a = [Record(id=1, name="Servicio de Agua Potable")]
        b = [Record(id=2, name="Sistema de Alcantarillado Publico")]

        result = RecordMatcher(strategy).compute_matches(a, b)

        assert result.matches[0].similarity == pytest.approx(1.0)
        assert 'initials' in registry


class TestThresholdBoundary:
    """Test the inclusive threshold."""

    def test_score_exactly_at_threshold_matches(self, matcher):
        a = [Record(id=1, name="bacheo", description="night", area="abc")]
        b = [Record(id=2, name="bacheo", description="nacht", area="xyz")]

        assert matcher.score_records(a[0], b[0]) == DEFAULT_STRATEGY.min_threshold

        result = matcher.compute_matches(a, b)

        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [(1, 2)]
        assert result.matches[0].similarity == 0.6

    def test_score_just_below_threshold_does_not_match(self, matcher):
        # "nachts" shares one bigram out of nine with "night"
        a = [Record(id=1, name="bacheo", description="night", area="abc")]
        b = [Record(id=2, name="bacheo", description="nachts", area="xyz")]

        assert matcher.score_records(a[0], b[0]) < DEFAULT_STRATEGY.min_threshold
        assert matcher.compute_matches(a, b).matches == ()


class TestMatchDataframes:
    """Test matching straight from DataFrames."""

    def test_dataframes_with_missing_cells(self, matcher):
        df_a = pd.DataFrame({
            'id': [1, 2],
            'name': ['Vacunación infantil', np.nan],
            'description': ['Aplicación de vacunas a niños', 'huérfano'],
            'area': ['Salud', 'Salud'],
        })
        df_b = pd.DataFrame({
            'id': [10, 11],
            'name': ['Vacunacion infantil', 'Licencias de conducir'],
            'description': ['Aplicacion de vacunas a ninos', np.nan],
            'area': ['Salud', np.nan],
            'extra': ['ignored', 'ignored'],
        })

        result = matcher.match_dataframes(df_a, df_b)

        assert result.skipped_a == 1
        assert [(m.record_a.id, m.record_b.id) for m in result.matches] == [(1, 10)]
        assert result.unmatched_b[0].description == ''
        assert result.unmatched_b[0].area == ''
