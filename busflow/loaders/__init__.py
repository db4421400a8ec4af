from .history import HistoricalRecord, HistoricalSeriesIndex, load_history_csv, records_from_frame
from .telemetry import VehiclePosition, clean_vehicle_positions, positions_from_frame

__all__ = [
    'HistoricalRecord',
    'HistoricalSeriesIndex',
    'load_history_csv',
    'records_from_frame',
    'VehiclePosition',
    'clean_vehicle_positions',
    'positions_from_frame'
]
