"""
Short-horizon passenger demand forecasting per route, stop and hour.

Baseline is the historical mean for the (route, stop, hour-of-day) series across all
observed days, scaled by a weekend factor and a peak-hour factor.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from busflow.common.logging import setup_logger, log_execution_time
from busflow.common.utils import round_half_up
from busflow.config.transit_params import is_peak_hour, is_weekend, resolve_params
from busflow.loaders.history import HistoricalRecord, HistoricalSeriesIndex

logger = setup_logger(__name__)


@dataclass(frozen=True)
class DemandPrediction:
    """Forecast boardings/alightings for one stop and hour of day"""
    route_id: str
    stop_id: str
    hour: int
    predicted_boardings: int
    predicted_alightings: int
    confidence: float  # sample-size heuristic in [0, confidence_cap]

    def __str__(self) -> str:
        return (f"Route {self.route_id} stop {self.stop_id} @ {self.hour:02d}:00 - "
                f"{self.predicted_boardings} on / {self.predicted_alightings} off "
                f"(confidence {self.confidence:.2f})")


class DemandPredictor:
    """
    Moving-average demand model over a fixed historical snapshot.

    The snapshot is indexed once at construction and never changes afterwards, so a
    single instance can serve concurrent readers. The prediction time is always
    passed in by the caller.
    """

    def __init__(self, records: Iterable[HistoricalRecord], params: Optional[dict] = None):
        """
        Args:
            records: Historical stop-level counts
            params: Optional engine parameters (see get_engine_params)
        """
        self._index = HistoricalSeriesIndex(records)
        self._params = dict(resolve_params(params))

    @property
    def index(self) -> HistoricalSeriesIndex:
        return self._index

    @property
    def history(self) -> Tuple[HistoricalRecord, ...]:
        return self._index.records

    @property
    def route_ids(self) -> Tuple[str, ...]:
        """Routes present in history, in order of first appearance"""
        return self._index.route_ids

    def weekend_factor(self, now: datetime) -> float:
        # Applied from the prediction day, even for forecast hours that fall on the next day
        return self._params['weekend_factor'] if is_weekend(now) else 1.0

    def peak_factor(self, hour: int) -> float:
        return self._params['peak_factor'] if is_peak_hour(hour, self._params) else 1.0

    def confidence(self, samples: int) -> float:
        """Sample-size heuristic: grows linearly with samples, capped"""
        return min(
            self._params['confidence_cap'],
            samples / self._params['confidence_saturation_samples']
        )

    def predict_demand(
        self,
        route_id: str,
        now: datetime,
        horizon_hours: Optional[int] = None
    ) -> List[DemandPrediction]:
        """
        Forecast demand for each stop of a route over the next hours.

        Hours start at the hour of `now` and wrap modulo 24. A (stop, hour) pair with
        no history produces no row, so output is sparse. All rows of one hour are
        contiguous and hours appear in forecast order.

        Args:
            route_id: Route to forecast
            now: Prediction time; its hour is the first forecast hour and its weekday
                selects the weekend factor
            horizon_hours: Number of hours to forecast (default from params); values
                <= 0 give an empty list

        Returns:
            List of DemandPrediction
        """
        if horizon_hours is None:
            horizon_hours = self._params['default_horizon_hours']
        if horizon_hours <= 0:
            logger.debug(f"Non-positive horizon {horizon_hours} for route {route_id}; nothing to predict")
            return []

        stops = self._index.route_stops(route_id)
        if not stops:
            logger.debug(f"No history for route {route_id}")
            return []

        weekend_factor = self.weekend_factor(now)
        predictions = []

        for offset in range(horizon_hours):
            target_hour = (now.hour + offset) % 24
            peak_factor = self.peak_factor(target_hour)

            for stop_id in stops:
                stats = self._index.stats(route_id, stop_id, target_hour)
                if stats is None:
                    continue

                predictions.append(DemandPrediction(
                    route_id=route_id,
                    stop_id=stop_id,
                    hour=target_hour,
                    predicted_boardings=round_half_up(stats.mean_boardings * weekend_factor * peak_factor),
                    predicted_alightings=round_half_up(stats.mean_alightings * weekend_factor * peak_factor),
                    confidence=self.confidence(stats.samples)
                ))

        return predictions

    @log_execution_time(logger)
    def predict_all(self, now: datetime, horizon_hours: Optional[int] = None) -> List[DemandPrediction]:
        """Forecast every route in history, route by route"""
        predictions = []
        for route_id in self.route_ids:
            predictions.extend(self.predict_demand(route_id, now, horizon_hours))
        return predictions


def ingest_history(
    records: Iterable[HistoricalRecord],
    params: Optional[dict] = None
) -> DemandPredictor:
    """Build a predictor over a historical snapshot"""
    predictor = DemandPredictor(records, params)
    logger.info(f"Indexed {len(predictor.index)} historical records across "
                f"{len(predictor.route_ids)} routes")
    return predictor
