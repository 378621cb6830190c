"""Web host for the replay engine (FastAPI).

Public API
----------
ReplayService  - owns one PlaybackController, collects notifications
app            - FastAPI application (``race_replay.web.app:app``)
"""

from race_replay.web.service import ReplayService

__all__ = ["ReplayService"]
