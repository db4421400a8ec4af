"""
Live vehicle telemetry snapshots.
Converts feed frames into VehiclePosition records and applies the plausibility
cleaning that must run before positions reach the bunching detector.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

import pandas as pd

from busflow.common.exceptions import InvalidInputError
from busflow.common.logging import setup_logger
from busflow.config.transit_params import resolve_params

logger = setup_logger(__name__)

POSITION_COLUMNS = [
    'vehicle_id', 'route_id', 'lat', 'lng', 'occupancy_pct',
    'speed_kmh', 'delay_minutes', 'next_stop', 'timestamp'
]

# Alternative column names found in feed exports
_COLUMN_ALIASES = {
    'latitude': 'lat',
    'longitude': 'lng',
    'lon': 'lng',
    'occupancy': 'occupancy_pct',
    'speed': 'speed_kmh',
    'delay': 'delay_minutes',
    'bus_id': 'vehicle_id'
}


@dataclass(frozen=True)
class VehiclePosition:
    """One live vehicle at one polling tick"""
    vehicle_id: str
    route_id: str
    lat: float
    lng: float
    occupancy_pct: float
    speed_kmh: float
    delay_minutes: int  # negative = early
    next_stop: str
    timestamp: datetime


def validate_position(position: VehiclePosition) -> VehiclePosition:
    """
    Reject positions whose numeric fields are not finite.

    Raises:
        InvalidInputError: non-finite coordinate, speed or occupancy
    """
    fields = {
        'lat': position.lat,
        'lng': position.lng,
        'speed_kmh': position.speed_kmh,
        'occupancy_pct': position.occupancy_pct
    }
    bad = [name for name, value in fields.items() if not math.isfinite(value)]
    if bad:
        raise InvalidInputError(f"Vehicle {position.vehicle_id} has non-finite {', '.join(bad)}")
    if not isinstance(position.timestamp, datetime):
        raise InvalidInputError(f"Vehicle {position.vehicle_id} has invalid timestamp {position.timestamp!r}")
    return position


def is_plausible(position: VehiclePosition, params: Optional[dict] = None) -> bool:
    """
    Whether a position lies inside the service area with plausible speed and occupancy.
    Non-finite values are never plausible.
    """
    params = resolve_params(params)
    try:
        validate_position(position)
    except InvalidInputError:
        return False

    area = params['service_area']
    if not (area['min_lat'] <= position.lat <= area['max_lat']):
        return False
    if not (area['min_lng'] <= position.lng <= area['max_lng']):
        return False
    if not (0 <= position.speed_kmh <= params['max_speed_kmh']):
        return False
    low, high = params['occupancy_range']
    return low <= position.occupancy_pct <= high


def clean_vehicle_positions(
    positions: Iterable[VehiclePosition],
    params: Optional[dict] = None
) -> List[VehiclePosition]:
    """
    Drop implausible positions (outside the service area, impossible speed,
    invalid occupancy, non-finite numbers). Order of the survivors is kept.
    """
    params = resolve_params(params)
    positions = list(positions)
    cleaned = [p for p in positions if is_plausible(p, params)]

    dropped = len(positions) - len(cleaned)
    if dropped:
        logger.info(f"Dropped {dropped} of {len(positions)} implausible vehicle positions")

    return cleaned


def _alias_renames(columns) -> dict:
    """Map each alias to its canonical name, at most one alias per canonical column"""
    renames = {}
    claimed = set(columns)
    for alias, canonical in _COLUMN_ALIASES.items():
        if alias in columns and canonical not in claimed:
            renames[alias] = canonical
            claimed.add(canonical)
    return renames


def positions_from_frame(df: pd.DataFrame) -> List[VehiclePosition]:
    """
    Build VehiclePosition records from a feed DataFrame.
    Accepts lat/lng, lat/lon or latitude/longitude coordinate columns.
    When a canonical column is already present, its aliases are ignored.

    Raises:
        InvalidInputError: missing columns or unparseable timestamps
    """
    frame = df.rename(columns=_alias_renames(df.columns))
    frame = frame.drop(columns=[c for c in _COLUMN_ALIASES if c in frame.columns])

    missing = [c for c in POSITION_COLUMNS if c not in frame.columns]
    if missing:
        raise InvalidInputError(f"Vehicle positions are missing columns: {missing}")

    if frame.empty:
        return []

    try:
        timestamps = pd.to_datetime(frame['timestamp'])
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Unparseable vehicle timestamps: {e}")
    if timestamps.isna().any():
        raise InvalidInputError(f"{int(timestamps.isna().sum())} vehicle positions have no timestamp")

    positions = []
    for row, ts in zip(frame[POSITION_COLUMNS].itertuples(index=False), timestamps):
        try:
            position = VehiclePosition(
                vehicle_id=str(row.vehicle_id),
                route_id=str(row.route_id),
                lat=float(row.lat),
                lng=float(row.lng),
                occupancy_pct=float(row.occupancy_pct),
                speed_kmh=float(row.speed_kmh),
                delay_minutes=int(row.delay_minutes),
                next_stop=str(row.next_stop),
                timestamp=ts.to_pydatetime()
            )
        except (ValueError, TypeError) as e:
            raise InvalidInputError(f"Malformed position for vehicle {row.vehicle_id}: {e}")
        positions.append(position)
    return positions


def positions_to_frame(positions: Iterable[VehiclePosition]) -> pd.DataFrame:
    """Flatten positions into a DataFrame with the canonical column names"""
    rows = [
        {
            'vehicle_id': p.vehicle_id,
            'route_id': p.route_id,
            'lat': p.lat,
            'lng': p.lng,
            'occupancy_pct': p.occupancy_pct,
            'speed_kmh': p.speed_kmh,
            'delay_minutes': p.delay_minutes,
            'next_stop': p.next_stop,
            'timestamp': p.timestamp
        }
        for p in positions
    ]
    return pd.DataFrame(rows, columns=POSITION_COLUMNS)
