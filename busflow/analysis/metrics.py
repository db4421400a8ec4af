"""
Fleet status and demand summary metrics
"""
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from busflow.common.utils import round_half_up
from busflow.config.transit_params import resolve_params
from busflow.loaders.telemetry import VehiclePosition, positions_to_frame


def delay_status(delay_minutes: float, params: Optional[dict] = None) -> str:
    """Operational label for a schedule deviation in minutes (negative = early)"""
    params = resolve_params(params)
    if delay_minutes > params['severe_delay_threshold_min']:
        return 'Severely Delayed'
    if delay_minutes > params['delayed_threshold_min']:
        return 'Delayed'
    if delay_minutes < params['early_threshold_min']:
        return 'Early'
    return 'On Time'


def occupancy_level(occupancy_pct: float, params: Optional[dict] = None) -> str:
    params = resolve_params(params)
    if occupancy_pct > params['occupancy_high_pct']:
        return 'high'
    if occupancy_pct > params['occupancy_medium_pct']:
        return 'medium'
    return 'low'


class FleetMetrics:
    """Calculate operational metrics for one live position snapshot"""

    def __init__(self, positions: Iterable[VehiclePosition], params: Optional[dict] = None):
        self.positions: List[VehiclePosition] = list(positions)
        self.params = resolve_params(params)

    def active_vehicles(self) -> int:
        return len(self.positions)

    def active_routes(self) -> int:
        return len({p.route_id for p in self.positions})

    def average_occupancy(self) -> int:
        """System-wide mean occupancy, rounded to whole percent (0 for an empty snapshot)"""
        if not self.positions:
            return 0
        return round_half_up(np.mean([p.occupancy_pct for p in self.positions]))

    def on_time_percentage(self) -> int:
        """Share of vehicles no more than the on-time tolerance behind schedule, whole percent"""
        if not self.positions:
            return 0
        tolerance = self.params['on_time_threshold_min']
        on_time = sum(1 for p in self.positions if p.delay_minutes <= tolerance)
        return round_half_up(on_time / len(self.positions) * 100)

    def routes_summary(self) -> pd.DataFrame:
        """
        Per-route vehicle count, on-time and delayed counts, mean occupancy
        (whole percent), mean delay and mean speed
        """
        columns = ['route_id', 'n_vehicles', 'n_on_time', 'n_delayed', 'avg_occupancy_pct',
                   'avg_delay_min', 'avg_speed_kmh']
        df = positions_to_frame(self.positions)
        if df.empty:
            return pd.DataFrame(columns=columns)

        df['on_time'] = df['delay_minutes'] <= self.params['on_time_threshold_min']
        df['delayed'] = df['delay_minutes'] > self.params['delayed_threshold_min']

        summary = (
            df.groupby('route_id', sort=False)
            .agg(
                n_vehicles=('vehicle_id', 'count'),
                n_on_time=('on_time', 'sum'),
                n_delayed=('delayed', 'sum'),
                avg_occupancy_pct=('occupancy_pct', 'mean'),
                avg_delay_min=('delay_minutes', 'mean'),
                avg_speed_kmh=('speed_kmh', 'mean')
            )
            .reset_index()
        )
        summary['n_on_time'] = summary['n_on_time'].astype(int)
        summary['n_delayed'] = summary['n_delayed'].astype(int)
        summary['avg_occupancy_pct'] = summary['avg_occupancy_pct'].map(round_half_up)
        return summary[columns]

    def snapshot_summary(self, alerts: Sequence = ()) -> Dict[str, int]:
        """Headline figures for a snapshot, including how many alerts are active"""
        return {
            'active_vehicles': self.active_vehicles(),
            'active_routes': self.active_routes(),
            'average_occupancy_pct': self.average_occupancy(),
            'on_time_pct': self.on_time_percentage(),
            'active_alerts': len(alerts)
        }


def predictions_to_frame(predictions: Iterable) -> pd.DataFrame:
    """Flatten DemandPrediction records into a DataFrame"""
    columns = ['route_id', 'stop_id', 'hour', 'predicted_boardings',
               'predicted_alightings', 'confidence']
    rows = [{c: getattr(p, c) for c in columns} for p in predictions]
    return pd.DataFrame(rows, columns=columns)


def demand_by_route(predictions: Iterable) -> pd.DataFrame:
    """Total predicted boardings and alightings per route"""
    df = predictions_to_frame(predictions)
    return (
        df.groupby('route_id', sort=False)[['predicted_boardings', 'predicted_alightings']]
        .sum()
        .reset_index()
    )


def demand_by_hour(predictions: Iterable, route_id: Optional[str] = None) -> pd.DataFrame:
    """
    Total predicted boardings per hour, optionally for a single route.
    Hours keep the order in which they were forecast (wrapping past midnight).
    """
    df = predictions_to_frame(predictions)
    if route_id is not None:
        df = df[df['route_id'] == route_id]
    return (
        df.groupby('hour', sort=False)
        .agg(
            predicted_boardings=('predicted_boardings', 'sum'),
            predicted_alightings=('predicted_alightings', 'sum'),
            n_stops=('stop_id', 'nunique')
        )
        .reset_index()
    )
