from __future__ import annotations

import pytest

from geo_suggest.models import Place
from geo_suggest.tests.factories import make_place


@pytest.fixture
def toronto() -> Place:
    return make_place(
        6167865, "Toronto", 43.70011, -79.4163,
        ascii_name="Toronto",
        country="CA",
        timezone="America/Toronto",
        population=2731571,
    )


@pytest.fixture
def north_york() -> Place:
    return make_place(
        6091104, "North York", 43.76681, -79.4163,
        ascii_name="North York",
        country="CA",
        timezone="America/Toronto",
        population=636000,
    )
