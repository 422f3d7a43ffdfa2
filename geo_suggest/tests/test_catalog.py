"""
Tests for TSV catalog parsing and loading.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import httpx
import pytest

from geo_suggest import catalog
from geo_suggest.catalog import iter_places, load_catalog, parse_place
from geo_suggest.config import CatalogConfig
from geo_suggest.exceptions import CatalogLoadError

SAMPLE_CATALOG = Path(__file__).resolve().parents[2] / "data" / "cities_canada-usa.tsv"

HEADER = (
    "id\tname\tascii\talt_name\tlat\tlong\tfeat_class\tfeat_code\tcountry\tcc2\t"
    "admin1\tadmin2\tadmin3\tadmin4\tpopulation\televation\tdem\ttz\tmodified_at\n"
)
TORONTO = (
    "6167865\tToronto\tToronto\tTorontas, Torontu ,YTO\t43.70011\t-79.4163\tP\tPPLA\tCA\t\t"
    "08\t\t\t\t2600000\t\t175\tAmerica/Toronto\t2012-01-01\n"
)


class TestParsePlace:
    def test_full_row(self):
        place = next(iter_places(HEADER + TORONTO))
        assert place.id == 6167865
        assert place.name == "Toronto"
        assert place.ascii_name == "Toronto"
        assert place.latitude == 43.70011
        assert place.longitude == -79.4163
        assert place.country == "CA"
        assert place.admin1 == "08"
        assert place.population == 2600000
        assert place.elevation is None
        assert place.dem == 175.0
        assert place.timezone == "America/Toronto"
        assert place.modified_at == date(2012, 1, 1)
        assert place.alternate_name_list() == ["Torontas", "Torontu", "YTO"]

    def test_bad_population_defaults_to_zero(self):
        place = parse_place({"id": "1", "name": "X", "lat": "1", "long": "2", "population": "lots"})
        assert place.population == 0

    def test_negative_population_clamped(self):
        place = parse_place({"id": "1", "name": "X", "lat": "1", "long": "2", "population": "-5"})
        assert place.population == 0

    def test_missing_optional_columns(self):
        place = parse_place({"id": "1", "name": "X", "lat": "1", "long": "2"})
        assert place.ascii_name == ""
        assert place.alternate_names == ""
        assert place.modified_at is None
        assert place.display_name == "X"

    @pytest.mark.parametrize("row", [
        {"id": "", "name": "X", "lat": "1", "long": "2"},
        {"id": "1", "name": "", "lat": "1", "long": "2"},
        {"id": "1", "name": "X", "lat": "north", "long": "2"},
        {"id": "1", "name": "X", "lat": "1"},
    ])
    def test_unplaceable_rows_rejected(self, row):
        assert parse_place(row) is None

    def test_bad_rows_skipped(self):
        text = HEADER + "oops\tBroken\n" + TORONTO
        places = list(iter_places(text))
        assert [p.name for p in places] == ["Toronto"]

    def test_header_only(self):
        assert list(iter_places(HEADER)) == []


class TestLoadCatalog:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "cities.tsv"
        path.write_text(HEADER + TORONTO, encoding="utf-8")
        places = load_catalog(str(path), CatalogConfig())
        assert len(places) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogLoadError) as exc:
            load_catalog(str(tmp_path / "missing.tsv"), CatalogConfig())
        assert "missing.tsv" in str(exc.value)

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "cities.tsv"
        path.write_bytes((HEADER + TORONTO.replace("Toronto\tToronto", "Montr\xe9al\tMontreal")).encode("latin-1"))
        with pytest.raises(CatalogLoadError) as exc:
            load_catalog(str(path), CatalogConfig())
        assert exc.value.reason == "not valid UTF-8"

    def test_byte_order_mark_is_ignored(self, tmp_path):
        path = tmp_path / "cities.tsv"
        path.write_bytes(b"\xef\xbb\xbf" + (HEADER + TORONTO).encode("utf-8"))
        places = load_catalog(str(path), CatalogConfig())
        assert [p.id for p in places] == [6167865]

    def test_load_from_url(self, monkeypatch):
        def fake_get(url, timeout, follow_redirects):
            return httpx.Response(200, text=HEADER + TORONTO, request=httpx.Request("GET", url))

        monkeypatch.setattr(catalog.httpx, "get", fake_get)
        places = load_catalog("https://example.test/cities.tsv", CatalogConfig())
        assert [p.name for p in places] == ["Toronto"]

    def test_url_http_error(self, monkeypatch):
        def fake_get(url, timeout, follow_redirects):
            return httpx.Response(404, request=httpx.Request("GET", url))

        monkeypatch.setattr(catalog.httpx, "get", fake_get)
        with pytest.raises(CatalogLoadError) as exc:
            load_catalog("https://example.test/cities.tsv", CatalogConfig())
        assert "404" in exc.value.reason

    def test_bundled_sample_catalog(self):
        places = load_catalog(str(SAMPLE_CATALOG), CatalogConfig())
        assert any(p.name == "Toronto" for p in places)
