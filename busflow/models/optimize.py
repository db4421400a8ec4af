"""
Dispatch frequency recommendations from predicted demand
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from busflow.common.logging import setup_logger, log_execution_time
from busflow.config.transit_params import resolve_params
from busflow.models.predictor import DemandPredictor

logger = setup_logger(__name__)


class Reasoning(str, Enum):
    """Rationale categories for a frequency recommendation"""
    INCREASE = "High demand detected - increasing frequency"
    REDUCE = "Low demand - reducing frequency to save costs"
    MAINTAIN = "Maintaining current schedule"


@dataclass(frozen=True)
class RouteOptimization:
    """Recommended dispatch frequency for one route"""
    route_id: str
    current_frequency: int  # vehicles per hour
    optimized_frequency: int
    expected_improvement: float  # |change| as % of current frequency
    reasoning: Reasoning
    total_demand: int = 0

    @property
    def frequency_change(self) -> int:
        """Signed change in vehicles per hour"""
        return self.optimized_frequency - self.current_frequency

    @property
    def current_headway_min(self) -> float:
        return 60 / self.current_frequency

    @property
    def optimized_headway_min(self) -> float:
        return 60 / self.optimized_frequency

    def __str__(self) -> str:
        return (f"Route {self.route_id}\n"
                f"  Frequency: {self.current_frequency}/h → {self.optimized_frequency}/h "
                f"({self.frequency_change:+d}, {self.expected_improvement:.0f}%)\n"
                f"  Predicted demand: {self.total_demand} boardings\n"
                f"  {self.reasoning.value}")


def recommend_frequency(
    total_demand: float,
    current_frequency: int,
    params: Optional[dict] = None
) -> Tuple[int, Reasoning]:
    """
    Threshold rule, first match wins: above the high threshold raise frequency,
    below the low threshold cut it, otherwise keep it.
    """
    params = resolve_params(params)
    if total_demand > params['high_demand_threshold']:
        return params['high_demand_frequency'], Reasoning.INCREASE
    if total_demand < params['low_demand_threshold']:
        return params['low_demand_frequency'], Reasoning.REDUCE
    return current_frequency, Reasoning.MAINTAIN


def expected_improvement(current_frequency: int, optimized_frequency: int) -> float:
    """Magnitude of the frequency change as a percentage; direction is in RouteOptimization.frequency_change"""
    return abs(optimized_frequency - current_frequency) / current_frequency * 100


class ScheduleOptimizer:
    """Recommend per-route dispatch frequencies from next-hour predicted boardings"""

    def __init__(self, predictor: DemandPredictor, params: Optional[dict] = None):
        """
        Args:
            predictor: DemandPredictor over the historical snapshot
            params: Optional engine parameters; `baseline_frequency` is the
                current frequency assumed for every route
        """
        self.predictor = predictor
        self.params = resolve_params(params)

    def optimize_route(self, route_id: str, now: datetime) -> RouteOptimization:
        predictions = self.predictor.predict_demand(route_id, now, horizon_hours=1)
        total_demand = sum(p.predicted_boardings for p in predictions)

        current_frequency = self.params['baseline_frequency']
        optimized_frequency, reasoning = recommend_frequency(
            total_demand, current_frequency, self.params
        )

        return RouteOptimization(
            route_id=route_id,
            current_frequency=current_frequency,
            optimized_frequency=optimized_frequency,
            expected_improvement=expected_improvement(current_frequency, optimized_frequency),
            reasoning=reasoning,
            total_demand=total_demand
        )

    @log_execution_time(logger)
    def optimize_schedules(self, now: datetime) -> List[RouteOptimization]:
        """
        One recommendation per route present in history, in first-seen route order.

        Args:
            now: Prediction time for the next-hour demand

        Returns:
            List of RouteOptimization (empty when there is no history)
        """
        optimizations = [self.optimize_route(route_id, now) for route_id in self.predictor.route_ids]

        changed = sum(1 for o in optimizations if o.frequency_change != 0)
        logger.info(f"Optimized {len(optimizations)} routes, {changed} frequency changes")

        return optimizations
