# tests/unit/test_datetime_utils.py
"""Unit tests for the unix-seconds clock helpers."""
import time

from src.lp_common.datetime_utils import now_ts, ts_to_iso


class TestNowTs:
    def test_whole_seconds(self):
        before = int(time.time())
        ts = now_ts()
        assert isinstance(ts, int)
        assert before <= ts <= int(time.time())


class TestTsToIso:
    def test_utc_iso(self):
        assert ts_to_iso(1_700_000_000) == "2023-11-14T22:13:20+00:00"

    def test_epoch(self):
        assert ts_to_iso(0) == "1970-01-01T00:00:00+00:00"
