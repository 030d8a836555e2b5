"""UTC clock utilities. Chain timestamps are unix seconds."""

import time
from datetime import datetime, timezone


def now_ts() -> int:
    """Current unix time in whole seconds, comparable with a listing's endTime."""
    return int(time.time())


def ts_to_iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()
