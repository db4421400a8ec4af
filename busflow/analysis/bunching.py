"""
Bus bunching detection.
Bunching occurs when vehicles on the same route close up on each other, causing uneven
headways and increased passenger wait times.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import numpy as np

from busflow.analysis.alerts import BunchingAlert, Severity
from busflow.analysis.geodesic import haversine_distance_matrix
from busflow.common.logging import setup_logger, log_execution_time
from busflow.common.utils import round_half_up
from busflow.config.transit_params import resolve_params
from busflow.loaders.telemetry import VehiclePosition

logger = setup_logger(__name__)


def bunching_severity(distance_km: float, params: Optional[dict] = None) -> Optional[Severity]:
    """
    Classify a same-route separation.

    Returns:
        'high' below the high-severity distance, 'medium' below the bunching
        threshold, None otherwise (including NaN)
    """
    params = resolve_params(params)
    if not distance_km < params['bunching_threshold_km']:
        return None
    return 'high' if distance_km < params['bunching_high_severity_km'] else 'medium'


def group_by_route(positions: Iterable[VehiclePosition]) -> Dict[str, List[VehiclePosition]]:
    """Group positions by route, preserving first-seen route order and position order"""
    groups = defaultdict(list)
    for position in positions:
        groups[position.route_id].append(position)
    return dict(groups)


@log_execution_time(logger)
def detect_bunching(
    positions: Iterable[VehiclePosition],
    params: Optional[dict] = None
) -> List[BunchingAlert]:
    """
    Detect bus bunching across all routes in a live snapshot.

    Every unordered pair of vehicles on the same route is checked once. Each close
    pair yields its own alert; clusters are not merged, so n mutually close vehicles
    produce n*(n-1)/2 alerts.

    Positions are expected to be cleaned already. They are not re-validated here:
    non-finite coordinates give NaN distances, which never raise an alert.

    Args:
        positions: Live VehiclePosition snapshot
        params: Optional engine parameters (bunching thresholds)

    Returns:
        List of BunchingAlert, grouped by route in first-seen order
    """
    params = resolve_params(params)
    alerts = []

    for route_id, vehicles in group_by_route(positions).items():
        if len(vehicles) < 2:
            continue

        lats = np.array([v.lat for v in vehicles], dtype=float)
        lngs = np.array([v.lng for v in vehicles], dtype=float)

        distances_km = haversine_distance_matrix(lats, lngs, lats, lngs)

        rows, cols = np.triu_indices(len(vehicles), k=1)

        for i, j in zip(rows, cols):
            distance_km = float(distances_km[i, j])
            severity = bunching_severity(distance_km, params)
            if severity is None:
                continue

            alerts.append(BunchingAlert(
                route_id=route_id,
                vehicle_ids=(vehicles[i].vehicle_id, vehicles[j].vehicle_id),
                distance_meters=round_half_up(distance_km * 1000),
                severity=severity
            ))

    if alerts:
        logger.info(f"Detected {len(alerts)} bunching pairs across "
                    f"{len({a.route_id for a in alerts})} routes")

    return alerts
