"""
GeoIndex: read-only spatial lookup over the building and hospital inventory.

Distances are great-circle (haversine) distances on a sphere with the mean
Earth radius, computed vectorized with numpy over the whole inventory. The
index is built once at start-up and never mutated, so concurrent readers
need no locking.
"""

from typing import Iterable, Optional

import numpy as np
import structlog

from miraat.models.buildings import BuildingRecord, GeoPoint, HospitalRecord

logger = structlog.get_logger()

EARTH_RADIUS_KM = 6371.0088
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0


def haversine_m(lon1, lat1, lon2, lat2):
    """
    Great-circle distance in metres.

    Accepts scalars or numpy arrays (degrees) and broadcasts like numpy.
    """
    lon1, lat1, lon2, lat2 = map(np.radians, (lon1, lat1, lon2, lat2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def _coordinates(points: Iterable[GeoPoint]) -> tuple[np.ndarray, np.ndarray]:
    lons, lats = [], []
    for p in points:
        lons.append(p.lon)
        lats.append(p.lat)
    lon = np.asarray(lons, dtype=np.float64)
    lat = np.asarray(lats, dtype=np.float64)
    lon.flags.writeable = False
    lat.flags.writeable = False
    return lon, lat


class GeoIndex:
    """
    Immutable inventory with radius and distance queries.

    Query results preserve inventory order so classification output is
    deterministic for a given dataset.

    Attributes:
        buildings: Building records in load order
        hospitals: Hospital records in load order
    """

    def __init__(
        self,
        buildings: Iterable[BuildingRecord],
        hospitals: Iterable[HospitalRecord] = (),
    ):
        self.buildings: tuple[BuildingRecord, ...] = tuple(buildings)
        self.hospitals: tuple[HospitalRecord, ...] = tuple(hospitals)

        self._building_lon, self._building_lat = _coordinates(b.location for b in self.buildings)
        self._hospital_lon, self._hospital_lat = _coordinates(h.location for h in self.hospitals)

        self._buildings_by_id = {b.id: b for b in self.buildings}
        self._hospitals_by_id = {h.id: h for h in self.hospitals}

        logger.info(
            "geo_index_built",
            buildings=len(self.buildings),
            hospitals=len(self.hospitals),
        )

    def building(self, building_id: int) -> Optional[BuildingRecord]:
        return self._buildings_by_id.get(building_id)

    def hospital(self, hospital_id: int) -> Optional[HospitalRecord]:
        return self._hospitals_by_id.get(hospital_id)

    @staticmethod
    def distance_m(a: GeoPoint, b: GeoPoint) -> float:
        return float(haversine_m(a.lon, a.lat, b.lon, b.lat))

    @staticmethod
    def contains(center: GeoPoint, point: GeoPoint, radius_m: float) -> bool:
        """Whether ``point`` lies within ``radius_m`` of ``center`` (inclusive)."""
        return GeoIndex.distance_m(center, point) <= radius_m

    def buildings_within(
        self, center: GeoPoint, radius_m: float
    ) -> list[tuple[BuildingRecord, float]]:
        """Buildings at distance <= radius_m, with their distances in metres."""
        if not self.buildings:
            return []
        distances = haversine_m(center.lon, center.lat, self._building_lon, self._building_lat)
        hits = np.flatnonzero(distances <= radius_m)
        return [(self.buildings[i], float(distances[i])) for i in hits]

    def hospital_distances(self, center: GeoPoint) -> list[tuple[HospitalRecord, float]]:
        """Every hospital with its distance in metres, in inventory order."""
        if not self.hospitals:
            return []
        distances = haversine_m(center.lon, center.lat, self._hospital_lon, self._hospital_lat)
        return [(h, float(d)) for h, d in zip(self.hospitals, distances)]

    def nearest_hospitals(
        self, center: GeoPoint, limit: int = 5
    ) -> list[tuple[HospitalRecord, float]]:
        ranked = sorted(self.hospital_distances(center), key=lambda pair: pair[1])
        return ranked[:limit]
