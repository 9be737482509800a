"""Server health utilities.

Provides `get_health` returning server status, start time, uptime and the
state of the account store.
"""
from datetime import datetime, timezone
from typing import Any, Optional
import time

# record process start time at import
_START_TIME = time.time()


def get_health(store: Optional[Any] = None, controller: Optional[Any] = None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'ok'
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - accounts: number of accounts in the store (None without a store)
    - sync: state of the sync controller (None without a controller)
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    return {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
        "accounts": len(store) if store is not None else None,
        "sync": controller.state.value if controller is not None else None,
    }
