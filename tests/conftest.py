"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import List

from config.models import Record
from core.matcher import RecordMatcher


@pytest.fixture
def matcher() -> RecordMatcher:
    """Matcher with the default name/description/area strategy."""
    return RecordMatcher()


@pytest.fixture
def functions() -> List[Record]:
    """Collection A: one institution's functions."""
    return [
        Record(
            id=1,
            name="Atención a población vulnerable",
            description="Brinda apoyo social",
            area="Salud",
        ),
        Record(
            id=2,
            name="Recolección de basura",
            description="",
            area="Limpia",
        ),
        Record(
            id=3,
            name="Vacunación infantil",
            description="Aplicación de vacunas a niños",
            area="Salud",
        ),
    ]


@pytest.fixture
def services() -> List[Record]:
    """Collection B: the other institution's services."""
    return [
        Record(
            id=9,
            name="Atencion poblacion vulnerable",
            description="Brinda apoyo social a vulnerables",
            area="Salud",
        ),
        Record(
            id=10,
            name="Licencias de conducir",
            description="Expedición de licencias",
            area="Movilidad",
        ),
        Record(
            id=11,
            name="Vacunacion infantil",
            description="Aplicacion de vacunas a ninos",
            area="Salud",
        ),
    ]
