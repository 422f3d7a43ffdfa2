"""
Relevance scoring: great-circle proximity, log-scaled population, and the
weighted blend of a text score with one of them.
"""

from __future__ import annotations

import math

import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_km_many(lats: np.ndarray, lons: np.ndarray, lat: float, lon: float) -> np.ndarray:
    """Distances in km from (lat, lon) to every point of the coordinate arrays."""
    lat_r = np.radians(lats)
    d_lat = lat_r - math.radians(lat)
    d_lon = np.radians(lons) - math.radians(lon)
    a = np.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat)) * np.cos(lat_r) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def proximity_from_distance(distance_km, max_distance_km: float):
    """1 at the caller's position, falling linearly to 0 at max_distance_km."""
    return np.maximum(0.0, 1.0 - np.asarray(distance_km) / max_distance_km)


def proximity_score(
    place_lat: float,
    place_lon: float,
    user_lat: float,
    user_lon: float,
    max_distance_km: float,
) -> float:
    distance = haversine_km(place_lat, place_lon, user_lat, user_lon)
    return max(0.0, 1.0 - distance / max_distance_km)


def population_score(population: int, max_population: int) -> float:
    """
    log10(population) / ceil(log10(max_population)).

    The ceiling means the largest place in the catalog usually lands a bit
    under 1.0 (2.7M -> 6.44 / 7 = 0.92); ordering is what matters here.
    """
    if population <= 0 or max_population <= 1:
        return 0.0
    scale = math.ceil(math.log10(max_population))
    return max(0.0, min(1.0, math.log10(population) / scale))


def combine_scores(text_score: float, secondary_score: float, weight: float) -> float:
    score = text_score * (1 - weight) + secondary_score * weight
    return max(0.0, min(1.0, score))
