"""
Periodic refresh of live engine outputs.
Pulls a telemetry snapshot from a caller-supplied feed on a fixed interval and runs
forecasting, schedule optimization and bunching detection over it.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional
import time

from busflow.analysis.alerts import Alert
from busflow.analysis.bunching import detect_bunching
from busflow.analysis.metrics import FleetMetrics
from busflow.common.logging import setup_logger
from busflow.config.transit_params import resolve_params
from busflow.loaders.telemetry import VehiclePosition, clean_vehicle_positions
from busflow.models.optimize import RouteOptimization, ScheduleOptimizer
from busflow.models.predictor import DemandPrediction, DemandPredictor

logger = setup_logger(__name__)

PositionFeed = Callable[[], Iterable[VehiclePosition]]


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything the engine derived from one polling tick"""
    timestamp: datetime
    positions: List[VehiclePosition]
    predictions: List[DemandPrediction]
    optimizations: List[RouteOptimization]
    alerts: List[Alert]
    summary: Dict[str, int] = field(default_factory=dict)


class SnapshotRefresher:
    """Run the engine over successive live snapshots"""

    def __init__(
        self,
        predictor: DemandPredictor,
        feed: PositionFeed,
        clock: Callable[[], datetime] = datetime.now,
        params: Optional[dict] = None
    ):
        """
        Args:
            predictor: DemandPredictor built once from history
            feed: Callable returning the current raw vehicle positions
            clock: Source of the prediction time
            params: Optional engine parameters
        """
        self.predictor = predictor
        self.optimizer = ScheduleOptimizer(predictor, params)
        self.feed = feed
        self.clock = clock
        self.params = resolve_params(params)

    def refresh_snapshot(self, now: Optional[datetime] = None) -> EngineSnapshot:
        """Clean one feed snapshot and derive predictions, optimizations, alerts and summary"""
        now = now or self.clock()

        positions = clean_vehicle_positions(self.feed(), self.params)
        predictions = self.predictor.predict_all(now, self.params['default_horizon_hours'])
        optimizations = self.optimizer.optimize_schedules(now)
        alerts = detect_bunching(positions, self.params)
        summary = FleetMetrics(positions, self.params).snapshot_summary(alerts)

        return EngineSnapshot(
            timestamp=now,
            positions=positions,
            predictions=predictions,
            optimizations=optimizations,
            alerts=alerts,
            summary=summary
        )

    def run_continuous(
        self,
        on_snapshot: Callable[[EngineSnapshot], None],
        duration_seconds: Optional[float] = None,
        max_snapshots: Optional[int] = None
    ) -> int:
        """
        Refresh on the configured interval until the duration or snapshot count is reached
        (runs indefinitely when both are None). A tick whose refresh fails is logged and
        skipped; polling continues on the next interval.

        Args:
            on_snapshot: Callback receiving each EngineSnapshot
            duration_seconds: How long to run (0 produces no snapshots)
            max_snapshots: Stop after this many snapshots

        Returns:
            Number of snapshots produced
        """
        interval = self.params['refresh_interval_sec']
        start_time = self.clock()
        end_time = start_time + timedelta(seconds=duration_seconds) if duration_seconds is not None else None

        logger.info(f"Starting refresh loop at {start_time}, interval {interval}s")

        snapshot_count = 0
        while True:
            if end_time is not None and self.clock() >= end_time:
                break
            if max_snapshots is not None and snapshot_count >= max_snapshots:
                break

            try:
                snapshot = self.refresh_snapshot()
            except Exception as e:
                logger.error(f"Error refreshing snapshot: {e}", exc_info=True)
                snapshot = None

            if snapshot:
                on_snapshot(snapshot)
                snapshot_count += 1
                logger.info(f"Snapshot {snapshot_count}: {snapshot.summary['active_vehicles']} vehicles, "
                            f"{len(snapshot.alerts)} alerts")

                if max_snapshots is not None and snapshot_count >= max_snapshots:
                    break
            time.sleep(interval)

        logger.info(f"Refresh loop complete. Produced {snapshot_count} snapshots.")
        return snapshot_count
