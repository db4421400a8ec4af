"""
Shared pytest fixtures for busflow tests

Provides fixtures for:
- Fixed prediction times (weekday / weekend)
- Historical record and vehicle position factories
- A small synthetic history with a known peak-hour series
"""

import math
from datetime import datetime, timedelta

import pytest

from busflow.analysis.geodesic import EARTH_RADIUS_KM
from busflow.loaders.history import HistoricalRecord
from busflow.loaders.telemetry import VehiclePosition

# Inside the default service area
BASE_LAT = 12.9716
BASE_LNG = 77.5946


@pytest.fixture
def north_of():
    """Latitude `distance_km` due north of `lat` along the meridian"""
    def _north_of(lat: float, distance_km: float) -> float:
        return lat + math.degrees(distance_km / EARTH_RADIUS_KM)
    return _north_of


@pytest.fixture
def weekday_morning() -> datetime:
    """Tuesday 08:15"""
    return datetime(2025, 3, 4, 8, 15)


@pytest.fixture
def weekday_afternoon() -> datetime:
    """Tuesday 14:30"""
    return datetime(2025, 3, 4, 14, 30)


@pytest.fixture
def saturday_afternoon() -> datetime:
    """Saturday 14:30"""
    return datetime(2025, 3, 8, 14, 30)


@pytest.fixture
def make_record():
    """Factory for HistoricalRecord on consecutive past days at a given hour"""
    def _make(route_id="R1", stop_id="S1", hour=8, boardings=10, alightings=5, days_ago=1):
        timestamp = datetime(2025, 3, 3, hour) - timedelta(days=days_ago)
        return HistoricalRecord(
            route_id=route_id,
            stop_id=stop_id,
            timestamp=timestamp,
            boardings=boardings,
            alightings=alightings,
        )
    return _make


@pytest.fixture
def make_series(make_record):
    """Factory for one (route, stop, hour) series with one record per day"""
    def _make(boardings, route_id="R1", stop_id="S1", hour=8, alightings=None):
        alightings = alightings if alightings is not None else [0] * len(boardings)
        return [
            make_record(route_id, stop_id, hour, b, a, days_ago=i + 1)
            for i, (b, a) in enumerate(zip(boardings, alightings))
        ]
    return _make


@pytest.fixture
def sample_history(make_series):
    """
    R1/S1 @ 8: boardings [40, 45, 50, 55, 60] (mean 50), alightings [10..30] (mean 20)
    R1/S1 @ 14: same boardings (mean 50)
    R1/S2 @ 8: boardings [20, 30] (mean 25)
    R2/S9 @ 9: boardings [5]
    """
    return (
        make_series([40, 45, 50, 55, 60], hour=8, alightings=[10, 15, 20, 25, 30])
        + make_series([40, 45, 50, 55, 60], hour=14)
        + make_series([20, 30], stop_id="S2", hour=8)
        + make_series([5], route_id="R2", stop_id="S9", hour=9)
    )


@pytest.fixture
def make_position():
    """Factory for VehiclePosition with plausible defaults"""
    def _make(vehicle_id="V1", route_id="R1", lat=BASE_LAT, lng=BASE_LNG,
              occupancy_pct=50.0, speed_kmh=25.0, delay_minutes=0):
        return VehiclePosition(
            vehicle_id=vehicle_id,
            route_id=route_id,
            lat=lat,
            lng=lng,
            occupancy_pct=occupancy_pct,
            speed_kmh=speed_kmh,
            delay_minutes=delay_minutes,
            next_stop="S1",
            timestamp=datetime(2025, 3, 4, 8, 15),
        )
    return _make
