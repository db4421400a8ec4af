"""
Historical stop-level passenger counts.
Loads boarding/alighting records and indexes them by (route, stop, hour of day).
"""
from pathlib import Path
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from busflow.common.exceptions import InvalidInputError


HISTORY_COLUMNS = ['route_id', 'stop_id', 'timestamp', 'boardings', 'alightings']

SeriesKey = Tuple[str, str, int]


@dataclass(frozen=True)
class HistoricalRecord:
    """One observed stop visit for one hour"""
    route_id: str
    stop_id: str
    timestamp: datetime
    boardings: int
    alightings: int

    @property
    def hour(self) -> int:
        return self.timestamp.hour

    @property
    def day_of_week(self) -> int:
        """Monday = 0 ... Sunday = 6"""
        return self.timestamp.weekday()


@dataclass(frozen=True)
class SeriesStats:
    """Sample count and baseline means for one (route, stop, hour) series"""
    samples: int
    mean_boardings: float
    mean_alightings: float


def validate_record(record: HistoricalRecord) -> HistoricalRecord:
    """Raise InvalidInputError for negative counts"""
    if record.boardings < 0 or record.alightings < 0:
        raise InvalidInputError(
            f"Negative passenger count for route {record.route_id}, stop {record.stop_id} "
            f"at {record.timestamp}: boardings={record.boardings}, alightings={record.alightings}"
        )
    return record


def records_to_frame(records: Iterable[HistoricalRecord]) -> pd.DataFrame:
    """
    Flatten records into a DataFrame, one row per record in input order.
    Adds derived `hour` and `day_of_week` columns.
    """
    rows = [
        {
            'route_id': r.route_id,
            'stop_id': r.stop_id,
            'timestamp': r.timestamp,
            'hour': r.hour,
            'day_of_week': r.day_of_week,
            'boardings': r.boardings,
            'alightings': r.alightings
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS[:3] + ['hour', 'day_of_week'] + HISTORY_COLUMNS[3:])


def records_from_frame(df: pd.DataFrame) -> List[HistoricalRecord]:
    """
    Build validated records from a DataFrame.

    Args:
        df: DataFrame with route_id, stop_id, timestamp, boardings, alightings

    Returns:
        List of HistoricalRecord in row order

    Raises:
        InvalidInputError: missing columns, unparseable timestamps, missing or negative counts
    """
    missing = [c for c in HISTORY_COLUMNS if c not in df.columns]
    if missing:
        raise InvalidInputError(f"History is missing columns: {missing}")

    if df.empty:
        return []

    try:
        timestamps = pd.to_datetime(df['timestamp'])
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Unparseable history timestamps: {e}")

    if timestamps.isna().any():
        raise InvalidInputError(f"{int(timestamps.isna().sum())} history rows have no timestamp")

    counts = df[['boardings', 'alightings']].apply(pd.to_numeric, errors='coerce')
    if counts.isna().any().any():
        raise InvalidInputError("History has missing or non-numeric passenger counts")
    if (counts < 0).any().any():
        n_bad = int((counts < 0).any(axis=1).sum())
        raise InvalidInputError(f"{n_bad} history rows have negative passenger counts")

    return [
        HistoricalRecord(
            route_id=str(route_id),
            stop_id=str(stop_id),
            timestamp=ts.to_pydatetime(),
            boardings=int(boardings),
            alightings=int(alightings)
        )
        for route_id, stop_id, ts, boardings, alightings in zip(
            df['route_id'], df['stop_id'], timestamps,
            counts['boardings'], counts['alightings']
        )
    ]


def load_history_csv(path: Union[str, Path]) -> List[HistoricalRecord]:
    """Load historical records from a CSV with the history columns"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"History file not found: {path}")
    df = pd.read_csv(path, dtype={'route_id': str, 'stop_id': str})
    return records_from_frame(df)


class HistoricalSeriesIndex:
    """
    Read-only index of historical records keyed by (route_id, stop_id, hour).

    Grouping happens once at construction; every lookup afterwards is a dict access.
    """

    KEY = ['route_id', 'stop_id', 'hour']

    def __init__(self, records: Iterable[HistoricalRecord]):
        self._records: Tuple[HistoricalRecord, ...] = tuple(records)
        frame = records_to_frame(self._records)

        groups: Dict[SeriesKey, Tuple[HistoricalRecord, ...]] = {}
        stats: Dict[SeriesKey, SeriesStats] = {}
        route_stops: Dict[str, Tuple[str, ...]] = {}

        if not frame.empty:
            grouped = frame.groupby(self.KEY, sort=False)

            for (route_id, stop_id, hour), positions in grouped.indices.items():
                key = (route_id, stop_id, int(hour))
                groups[key] = tuple(self._records[i] for i in np.sort(positions))

            agg = grouped.agg(
                samples=('boardings', 'size'),
                mean_boardings=('boardings', 'mean'),
                mean_alightings=('alightings', 'mean')
            )
            for (route_id, stop_id, hour), row in agg.iterrows():
                stats[(route_id, stop_id, int(hour))] = SeriesStats(
                    samples=int(row['samples']),
                    mean_boardings=float(row['mean_boardings']),
                    mean_alightings=float(row['mean_alightings'])
                )

            for route_id, stops in frame.groupby('route_id', sort=False)['stop_id'].unique().items():
                route_stops[route_id] = tuple(stops)

        self._groups: Mapping[SeriesKey, Tuple[HistoricalRecord, ...]] = MappingProxyType(groups)
        self._stats: Mapping[SeriesKey, SeriesStats] = MappingProxyType(stats)
        self._route_stops: Mapping[str, Tuple[str, ...]] = MappingProxyType(route_stops)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[HistoricalRecord, ...]:
        return self._records

    @property
    def groups(self) -> Mapping[SeriesKey, Tuple[HistoricalRecord, ...]]:
        """(route_id, stop_id, hour) -> matching records, read-only"""
        return self._groups

    @property
    def route_ids(self) -> Tuple[str, ...]:
        """Distinct routes in order of first appearance"""
        return tuple(self._route_stops)

    def route_stops(self, route_id: str) -> Tuple[str, ...]:
        """Distinct stops seen for a route, in order of first appearance"""
        return self._route_stops.get(route_id, ())

    def lookup(self, route_id: str, stop_id: str, hour: int) -> Tuple[HistoricalRecord, ...]:
        return self._groups.get((route_id, stop_id, hour), ())

    def stats(self, route_id: str, stop_id: str, hour: int) -> Optional[SeriesStats]:
        """Baseline means for a series, or None when history has no sample for it"""
        return self._stats.get((route_id, stop_id, hour))

    def to_frame(self) -> pd.DataFrame:
        """Fresh DataFrame copy of the indexed records"""
        return records_to_frame(self._records)
