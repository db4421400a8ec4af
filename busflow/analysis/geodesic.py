"""
Great-circle distance between coordinates (haversine, spherical Earth).
"""
from math import radians, sin, cos, sqrt, atan2

import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance in km between two points in decimal degrees.
    NaN in any coordinate gives NaN.
    """
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_distance_matrix(lat1_arr, lng1_arr, lat2_arr, lng2_arr):
    """
    Calculate great-circle distances between two sets of points using haversine formula.
    Returns distance matrix in km with shape (len(lat1_arr), len(lat2_arr)).
    Element [i, j] is distance from point i in set 1 to point j in set 2.
    """
    lat1_rad = np.radians(np.asarray(lat1_arr, dtype=float))
    lng1_rad = np.radians(np.asarray(lng1_arr, dtype=float))
    lat2_rad = np.radians(np.asarray(lat2_arr, dtype=float))
    lng2_rad = np.radians(np.asarray(lng2_arr, dtype=float))
    
    dlat = lat2_rad[np.newaxis, :] - lat1_rad[:, np.newaxis]
    dlng = lng2_rad[np.newaxis, :] - lng1_rad[:, np.newaxis]
    
    a = np.sin(dlat/2)**2 + np.cos(lat1_rad[:, np.newaxis]) * np.cos(lat2_rad[np.newaxis, :]) * np.sin(dlng/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))
    
    return EARTH_RADIUS_KM * c
