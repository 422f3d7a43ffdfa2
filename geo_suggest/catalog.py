"""
Place catalog loading.

Reads a GeoNames-style TSV export (header row + one place per line) from a
local file or an http(s) URL and turns each row into a `Place`.

Column names follow the cities dump used by the service:
  id, name, ascii, alt_name, lat, long, feat_class, feat_code, country, cc2,
  admin1, admin2, admin3, admin4, population, elevation, dem, tz, modified_at

Rows without a usable id or coordinate are skipped with a warning; every other
field degrades to an empty/zero/None default.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import httpx

from geo_suggest.config import CatalogConfig, get_settings
from geo_suggest.exceptions import CatalogLoadError
from geo_suggest.models import Place

logger = logging.getLogger(__name__)


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _to_int(value: Optional[str], default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _to_date(value: Optional[str]) -> Optional[date]:
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def parse_place(row: dict[str, str]) -> Optional[Place]:
    """
    Build a Place from one TSV row (already mapped header -> value).
    Returns None when the row cannot be placed on a map.
    """
    row = {k.strip(): (v or "").strip() for k, v in row.items() if k}

    place_id = _to_int(row.get("id"), default=-1)
    lat = _to_float(row.get("lat"))
    lon = _to_float(row.get("long"))
    name = row.get("name", "")
    if place_id < 0 or lat is None or lon is None or not name:
        return None

    population = max(0, _to_int(row.get("population")))

    return Place(
        id=place_id,
        name=name,
        latitude=lat,
        longitude=lon,
        ascii_name=row.get("ascii", ""),
        alternate_names=row.get("alt_name", ""),
        feature_class=row.get("feat_class", ""),
        feature_code=row.get("feat_code", ""),
        country=row.get("country", ""),
        alt_country_codes=row.get("cc2", ""),
        admin1=row.get("admin1", ""),
        admin2=row.get("admin2", ""),
        admin3=row.get("admin3", ""),
        admin4=row.get("admin4", ""),
        population=population,
        elevation=_to_float(row.get("elevation")),
        dem=_to_float(row.get("dem")),
        timezone=row.get("tz", ""),
        modified_at=_to_date(row.get("modified_at")),
    )


def iter_places(text: str) -> Iterator[Place]:
    """Parse TSV text, yielding a Place per valid row."""
    reader = csv.DictReader(io.StringIO(text), delimiter="\t", quoting=csv.QUOTE_NONE)
    skipped = 0
    for line_no, row in enumerate(reader, start=2):
        place = parse_place(row)
        if place is None:
            skipped += 1
            logger.warning("Skipping catalog line %d: missing id, name or coordinates", line_no)
            continue
        yield place
    if skipped:
        logger.info("Catalog parse skipped %d rows", skipped)


def _read_source(source: str, timeout: float) -> str:
    if source.startswith(("http://", "https://")):
        try:
            resp = httpx.get(source, timeout=timeout, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CatalogLoadError(source, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise CatalogLoadError(source, str(e)) from e
        return resp.text

    path = Path(source)
    try:
        # utf-8-sig drops a leading BOM that would otherwise stick to the "id" header
        return path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise CatalogLoadError(source, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise CatalogLoadError(source, "not valid UTF-8") from e


def load_catalog(source: Optional[str] = None, config: Optional[CatalogConfig] = None) -> list[Place]:
    """
    Read the whole catalog into memory.
    Raises CatalogLoadError when the source cannot be read.
    """
    config = config or get_settings().catalog
    source = source or config.source

    logger.info("Loading place catalog from %s", source)
    places = list(iter_places(_read_source(source, config.request_timeout)))
    logger.info("Loaded %d places from %s", len(places), source)
    return places
