from .alerts import Alert, BunchingAlert, alerts_to_frame
from .bunching import detect_bunching
from .geodesic import haversine_km, haversine_distance_matrix
from .metrics import FleetMetrics, demand_by_hour, demand_by_route

__all__ = [
    'Alert',
    'BunchingAlert',
    'alerts_to_frame',
    'detect_bunching',
    'haversine_km',
    'haversine_distance_matrix',
    'FleetMetrics',
    'demand_by_hour',
    'demand_by_route'
]
