"""
Engine parameters and calendar helpers
Provides default demand, scheduling, bunching and telemetry-plausibility parameters
"""
from typing import Optional
from datetime import datetime

from busflow.common.exceptions import ConfigurationError


def get_engine_params(overrides: Optional[dict] = None) -> dict:
    """
    Get engine parameters, optionally overriding individual defaults.
    
    Args:
        overrides: Optional dict of parameter name -> value
        
    Returns:
        Dictionary of engine parameters
        
    Raises:
        ConfigurationError: if an override names an unknown parameter
    """
    params = {
        # Demand prediction
        'weekend_factor': 0.7,
        'peak_factor': 1.3,
        'peak_windows': ((7, 10), (17, 20)),
        'confidence_cap': 0.95,
        'confidence_saturation_samples': 30,
        'default_horizon_hours': 6,
        
        # Schedule optimization (vehicles per hour)
        'baseline_frequency': 4,
        'high_demand_threshold': 200,
        'low_demand_threshold': 50,
        'high_demand_frequency': 6,
        'low_demand_frequency': 2,
        
        # Bunching
        'bunching_threshold_km': 0.5,
        'bunching_high_severity_km': 0.2,
        
        # Telemetry plausibility
        'service_area': {
            'min_lat': 12.8,
            'max_lat': 13.2,
            'min_lng': 77.3,
            'max_lng': 77.8
        },
        'max_speed_kmh': 80.0,
        'occupancy_range': (0.0, 100.0),
        
        # Fleet status
        'on_time_threshold_min': 2,
        'delayed_threshold_min': 5,
        'severe_delay_threshold_min': 10,
        'early_threshold_min': -2,
        'occupancy_medium_pct': 60,
        'occupancy_high_pct': 80,
        
        'refresh_interval_sec': 5
    }
    
    if overrides:
        unknown = sorted(set(overrides) - set(params))
        if unknown:
            raise ConfigurationError(f"Unknown engine parameters: {unknown}")
        params.update(overrides)
    
    return params


def resolve_params(params: Optional[dict] = None) -> dict:
    """
    Complete a caller's parameter dict.
    A partial dict such as {'peak_factor': 1.5} is merged over the defaults.

    Raises:
        ConfigurationError: if params names an unknown parameter
    """
    if params is None or params is BUSFLOW_PARAMS:
        return BUSFLOW_PARAMS
    return get_engine_params(params)


def is_weekend(moment: datetime) -> bool:
    """Saturday or Sunday"""
    return moment.weekday() >= 5


def is_peak_hour(hour: int, params: Optional[dict] = None) -> bool:
    """Whether an hour of day falls inside an (inclusive) peak window"""
    params = resolve_params(params)
    return any(start <= hour <= end for start, end in params['peak_windows'])


BUSFLOW_PARAMS = get_engine_params()
