from .predictor import DemandPredictor, DemandPrediction, ingest_history
from .optimize import ScheduleOptimizer, RouteOptimization, Reasoning

__all__ = [
    'DemandPredictor',
    'DemandPrediction',
    'ingest_history',
    'ScheduleOptimizer',
    'RouteOptimization',
    'Reasoning'
]
