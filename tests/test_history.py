"""
Unit tests for historical record loading and the (route, stop, hour) index

Run with: pytest tests/test_history.py
"""

from datetime import datetime

import pandas as pd
import pytest

from busflow.common.exceptions import InvalidInputError
from busflow.loaders.history import (
    HistoricalRecord,
    HistoricalSeriesIndex,
    load_history_csv,
    records_from_frame,
    records_to_frame,
    validate_record,
)


class TestHistoricalSeriesIndex:
    """Tests for grouping and lookup"""

    def test_empty_history(self):
        """Empty input gives an empty index, not an error"""
        index = HistoricalSeriesIndex([])
        assert len(index) == 0
        assert index.route_ids == ()
        assert index.route_stops("R1") == ()
        assert index.stats("R1", "S1", 8) is None
        assert dict(index.groups) == {}

    def test_groups_by_route_stop_hour(self, sample_history):
        """Records land under their (route, stop, hour) key regardless of day"""
        index = HistoricalSeriesIndex(sample_history)
        group = index.lookup("R1", "S1", 8)
        assert len(group) == 5
        assert [r.boardings for r in group] == [40, 45, 50, 55, 60]
        assert all(r.hour == 8 for r in group)
        assert len({r.timestamp.date() for r in group}) == 5

    def test_lookup_missing_key(self, sample_history):
        """Unknown keys give an empty tuple"""
        index = HistoricalSeriesIndex(sample_history)
        assert index.lookup("R1", "S2", 14) == ()
        assert index.lookup("R9", "S1", 8) == ()

    def test_stats_means(self, sample_history):
        """Stats hold sample count and arithmetic means"""
        stats = HistoricalSeriesIndex(sample_history).stats("R1", "S1", 8)
        assert stats.samples == 5
        assert stats.mean_boardings == pytest.approx(50.0)
        assert stats.mean_alightings == pytest.approx(20.0)

    def test_route_ids_first_seen_order(self, sample_history):
        """Routes keep order of first appearance"""
        assert HistoricalSeriesIndex(sample_history).route_ids == ("R1", "R2")

    def test_route_stops(self, sample_history):
        """Distinct stops per route"""
        index = HistoricalSeriesIndex(sample_history)
        assert index.route_stops("R1") == ("S1", "S2")
        assert index.route_stops("R2") == ("S9",)

    def test_groups_are_read_only(self, sample_history):
        """The index exposes no mutation path"""
        index = HistoricalSeriesIndex(sample_history)
        with pytest.raises(TypeError):
            index.groups[("R1", "S1", 8)] = ()

    def test_input_list_changes_do_not_leak(self, make_series):
        """Mutating the caller's list after construction does not change the index"""
        records = make_series([10, 20])
        index = HistoricalSeriesIndex(records)
        records.clear()
        assert len(index) == 2
        assert index.stats("R1", "S1", 8).samples == 2


class TestRecordFrames:
    """Tests for DataFrame and CSV conversion"""

    def test_records_to_frame_adds_calendar_columns(self, sample_history):
        """Frame carries hour and day_of_week"""
        df = records_to_frame(sample_history)
        assert len(df) == len(sample_history)
        assert {"hour", "day_of_week"} <= set(df.columns)

    def test_records_from_frame(self):
        """Rows become records with parsed timestamps"""
        df = pd.DataFrame({
            "route_id": ["R1", "R1"],
            "stop_id": ["S1", "S2"],
            "timestamp": ["2025-03-03 08:00", "2025-03-03 09:00"],
            "boardings": [12, 7],
            "alightings": [3, 4],
        })
        records = records_from_frame(df)
        assert records[0] == HistoricalRecord("R1", "S1", datetime(2025, 3, 3, 8), 12, 3)
        assert records[1].hour == 9

    def test_records_from_frame_missing_columns(self):
        """Missing columns are rejected"""
        with pytest.raises(InvalidInputError, match="missing columns"):
            records_from_frame(pd.DataFrame({"route_id": ["R1"]}))

    def test_records_from_frame_negative_counts(self):
        """Negative counts are rejected"""
        df = pd.DataFrame({
            "route_id": ["R1"],
            "stop_id": ["S1"],
            "timestamp": ["2025-03-03 08:00"],
            "boardings": [-1],
            "alightings": [0],
        })
        with pytest.raises(InvalidInputError, match="negative"):
            records_from_frame(df)

    def test_records_from_frame_bad_timestamp(self):
        """Unparseable timestamps are rejected"""
        df = pd.DataFrame({
            "route_id": ["R1"],
            "stop_id": ["S1"],
            "timestamp": ["not a time"],
            "boardings": [1],
            "alightings": [0],
        })
        with pytest.raises(InvalidInputError):
            records_from_frame(df)

    def test_load_history_csv(self, tmp_path):
        """CSV round trip keeps string identifiers"""
        path = tmp_path / "history.csv"
        path.write_text(
            "route_id,stop_id,timestamp,boardings,alightings\n"
            "01,007,2025-03-03 08:00:00,12,3\n"
        )
        records = load_history_csv(path)
        assert records[0].route_id == "01"
        assert records[0].stop_id == "007"

    def test_load_history_csv_missing_file(self, tmp_path):
        """Missing file raises FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            load_history_csv(tmp_path / "nope.csv")

    def test_validate_record(self, make_record):
        """validate_record passes good records through and rejects negative counts"""
        good = make_record()
        assert validate_record(good) is good
        with pytest.raises(InvalidInputError):
            validate_record(make_record(boardings=-3))
