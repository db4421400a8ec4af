"""
Configuration module for engine parameters
"""
from .transit_params import BUSFLOW_PARAMS, get_engine_params, is_peak_hour, is_weekend, resolve_params

__all__ = ['BUSFLOW_PARAMS', 'get_engine_params', 'is_peak_hour', 'is_weekend', 'resolve_params']
