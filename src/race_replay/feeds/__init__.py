"""Session data sources for the replay host.

Public API
----------
OpenF1Client   - fetches drivers/position/laps/race_control for a session key
OpenF1Error    - raised on transport or payload errors
SessionData    - raw rows for one session
SessionCache   - SQLite cache of fetched sessions
"""

from race_replay.feeds.cache import SessionCache
from race_replay.feeds.openf1 import OpenF1Client, OpenF1Error, SessionData

__all__ = [
    "OpenF1Client",
    "OpenF1Error",
    "SessionCache",
    "SessionData",
]
