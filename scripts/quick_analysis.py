#!/usr/bin/env python3
"""
Quick analysis script - forecast, schedule recommendations and bunching alerts
from a history CSV and an optional live positions CSV.

Usage:
    python scripts/quick_analysis.py --history data/history.csv [--positions data/positions.csv]
                                     [--now 2025-03-04T08:15] [--hours 6]
"""
import sys
import argparse
from datetime import datetime
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from busflow.analysis.bunching import detect_bunching
from busflow.analysis.metrics import FleetMetrics, demand_by_route
from busflow.config.transit_params import BUSFLOW_PARAMS
from busflow.loaders.history import load_history_csv
from busflow.loaders.telemetry import clean_vehicle_positions, positions_from_frame
from busflow.models.optimize import ScheduleOptimizer
from busflow.models.predictor import ingest_history


def main():
    parser = argparse.ArgumentParser(description='Transit demand and operations quick analysis')
    parser.add_argument('--history', required=True,
                        help='CSV with route_id, stop_id, timestamp, boardings, alightings')
    parser.add_argument('--positions', default=None,
                        help='CSV of live vehicle positions (optional)')
    parser.add_argument('--now', default=None,
                        help='Prediction time, ISO format (default: current time)')
    parser.add_argument('--hours', type=int, default=BUSFLOW_PARAMS['default_horizon_hours'],
                        help='Forecast horizon in hours')
    args = parser.parse_args()

    now = datetime.fromisoformat(args.now) if args.now else datetime.now()

    print("=" * 70)
    print(f"Transit Quick Analysis - {now:%Y-%m-%d %H:%M}")
    print("=" * 70)

    print("\n1. Loading history...")
    predictor = ingest_history(load_history_csv(args.history))
    print(f"   - Records: {len(predictor.history):,}")
    print(f"   - Routes: {len(predictor.route_ids)}")

    print(f"\n2. Forecasting next {args.hours} hours...")
    predictions = predictor.predict_all(now, args.hours)
    totals = demand_by_route(predictions)
    for _, row in totals.iterrows():
        print(f"   - Route {row['route_id']}: {row['predicted_boardings']:,} predicted boardings")

    print("\n3. Schedule recommendations (next hour):")
    for opt in ScheduleOptimizer(predictor).optimize_schedules(now):
        print(f"   {opt}".replace("\n", "\n   "))

    if args.positions:
        print("\n4. Live operations...")
        positions = clean_vehicle_positions(positions_from_frame(pd.read_csv(args.positions)))
        alerts = detect_bunching(positions)
        summary = FleetMetrics(positions).snapshot_summary(alerts)

        print(f"   - Active vehicles: {summary['active_vehicles']} across {summary['active_routes']} routes")
        print(f"   - Average occupancy: {summary['average_occupancy_pct']}%")
        print(f"   - On-time performance: {summary['on_time_pct']}%")
        print(f"   - Active alerts: {summary['active_alerts']}")
        for alert in alerts:
            print(f"   {alert}".replace("\n", "\n   "))

    print("\n" + "=" * 70)
    print("Analysis Complete!")
    print("=" * 70)


if __name__ == '__main__':
    main()
