"""ReplayService — owns one PlaybackController on behalf of the Web API."""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime

from race_replay.feeds.cache import SessionCache
from race_replay.feeds.openf1 import OpenF1Client, SessionData
from race_replay.simulation.controller import PlaybackConfig, PlaybackController
from race_replay.timing.best_times import Metric, TimeClass
from race_replay.web.schemas import (
    BoardRowModel,
    LoadRequest,
    LoadResponse,
    MessageModel,
    NotificationModel,
    StateResponse,
)

_logger = logging.getLogger(__name__)

_NOTIFICATION_LIMIT = 50
_MESSAGE_LIMIT = 20  # the core keeps every message; the API returns the newest few


class ReplayService:
    """Host-side wrapper: loads data into the controller, collects
    notifications and renders state for the API.

    Parameters
    ----------
    config:
        Playback settings for the controller this service creates.
    cache:
        Optional :class:`SessionCache`; fetched sessions are stored in and
        served from it.
    client_factory:
        Zero-argument callable returning an :class:`OpenF1Client` (tests
        inject one backed by a mock transport).
    """

    def __init__(
        self,
        config: PlaybackConfig | None = None,
        cache: SessionCache | None = None,
        client_factory: Callable[[], OpenF1Client] | None = None,
        notification_limit: int = _NOTIFICATION_LIMIT,
    ) -> None:
        self._cache = cache
        self._client_factory = client_factory or OpenF1Client
        self._notifications: deque[NotificationModel] = deque(maxlen=notification_limit)
        self._notification_ids = itertools.count(1)
        self._notify_lock = threading.Lock()
        self.controller = PlaybackController(config, on_message=self._on_message)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, req: LoadRequest) -> LoadResponse:
        """Load arrays supplied by the caller.  Raises ``ReplayInputError`` on bad shapes."""
        data = SessionData(
            session_key=0,
            drivers=req.drivers,
            positions=req.positions,
            laps=req.laps,
            messages=req.messages,
        )
        return self._load(data, source="request", session_key=None)

    def fetch(self, session_key: int, refresh: bool = False) -> LoadResponse:
        """Load an OpenF1 session, from the cache unless *refresh* is set.

        Raises
        ------
        OpenF1Error
            If the session has to be fetched and OpenF1 fails.
        ReplayInputError
            If the rows are malformed; such a session is not cached.
        """
        data = None if refresh or self._cache is None else self._cache.load(session_key)
        if data is not None:
            return self._load(data, source="cache", session_key=session_key)

        client = self._client_factory()
        try:
            data = client.fetch_session(session_key)
        finally:
            client.close()
        response = self._load(data, source="openf1", session_key=session_key)
        if self._cache is not None:
            self._cache.save(data)
        return response

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def state(self, message_limit: int = _MESSAGE_LIMIT) -> StateResponse:
        view = self.controller.view()
        rows = [
            BoardRowModel(
                position=row.position,
                driver_number=row.competitor_id,
                label=row.label,
                team_name=row.team_name,
                team_colour=row.team_colour,
                change=row.change.value,
                lap_number=row.lap.lap_number if row.lap else None,
                is_pit_out_lap=row.lap.is_pit_out_lap if row.lap else False,
                times={m.value: text for m, text in row.formatted_times().items()},
                classes={
                    m.value: (row.lap_classes[m] if row.lap_classes else TimeClass.ORDINARY).value
                    for m in Metric
                },
            )
            for row in view.board
        ]
        messages = [
            MessageModel(
                timestamp=_iso(m.timestamp),
                category=m.category,
                flag=m.flag,
                message=m.free_text,
            )
            for m in view.snapshot.messages[:message_limit]
        ]
        return StateResponse(
            status=view.state.value,
            speed=view.speed,
            period_s=view.period_s,
            cursor_index=view.cursor.index,
            timeline_length=len(view.cursor.timeline),
            board=rows,
            messages=messages,
            overall_best={m.value: best for m, best in view.overall_best.items()},
        )

    def notifications(self, after_id: int = 0) -> list[NotificationModel]:
        """Return notifications with an id greater than *after_id*, oldest first."""
        with self._notify_lock:
            return [n for n in self._notifications if n.id > after_id]

    def close(self) -> None:
        self.controller.close()
        if self._cache is not None:
            self._cache.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self, data: SessionData, source: str, session_key: int | None) -> LoadResponse:
        with self._notify_lock:
            self._notifications.clear()
        self.controller.load_data(data.drivers, data.positions, data.laps, data.messages)
        return LoadResponse(
            source=source,
            session_key=session_key,
            counts=data.counts(),
            timeline_events=len(self.controller.cursor.timeline),
        )

    def _on_message(self, text: str) -> None:
        with self._notify_lock:
            self._notifications.append(NotificationModel(id=next(self._notification_ids), text=text))
        _logger.debug("Race control: %s", text)


def _iso(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
