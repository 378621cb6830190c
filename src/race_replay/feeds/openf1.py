"""OpenF1 REST client — fetches the four arrays a replay needs.

See https://openf1.org.  Every endpoint is queried by ``session_key`` and
returns a JSON list of rows; rows are passed through untouched (parsing is
:class:`race_replay.timeline.parser.RecordParser`'s job).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openf1.org/v1"

# SessionData field → OpenF1 endpoint
_ENDPOINTS: tuple[tuple[str, str], ...] = (
    ("drivers", "drivers"),
    ("positions", "position"),
    ("laps", "laps"),
    ("messages", "race_control"),
)


class OpenF1Error(RuntimeError):
    """Raised when OpenF1 cannot be reached or returns an unusable response."""


@dataclass
class SessionData:
    """Raw rows for one session, as returned by OpenF1."""

    session_key: int
    drivers: list[dict[str, Any]] = field(default_factory=list)
    positions: list[dict[str, Any]] = field(default_factory=list)
    laps: list[dict[str, Any]] = field(default_factory=list)
    messages: list[dict[str, Any]] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "drivers": len(self.drivers),
            "positions": len(self.positions),
            "laps": len(self.laps),
            "messages": len(self.messages),
        }


class OpenF1Client:
    """Thin synchronous OpenF1 client.

    Parameters
    ----------
    base_url:
        API root, e.g. ``https://api.openf1.org/v1``.
    timeout:
        Per-request timeout in seconds.
    http_client:
        Optional pre-built :class:`httpx.Client` (tests inject one with a
        mock transport).  The client is closed by :meth:`close` only if this
        object created it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def fetch_session(self, session_key: int) -> SessionData:
        """Fetch drivers, positions, laps and race-control messages for *session_key*.

        Raises
        ------
        OpenF1Error
            On transport errors, non-2xx responses or non-list payloads.
        """
        data = SessionData(session_key=session_key)
        for attr, endpoint in _ENDPOINTS:
            setattr(data, attr, self._get(endpoint, session_key))
        _logger.info("Fetched OpenF1 session %s: %s", session_key, data.counts())
        return data

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> OpenF1Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get(self, endpoint: str, session_key: int) -> list[dict[str, Any]]:
        url = f"{self._base_url}/{endpoint}"
        try:
            resp = self._http.get(url, params={"session_key": session_key})
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            _logger.warning("OpenF1 request failed: %s %s", url, exc)
            raise OpenF1Error(f"OpenF1 request to {endpoint!r} failed: {exc}") from exc
        except ValueError as exc:
            raise OpenF1Error(f"OpenF1 {endpoint!r} returned invalid JSON") from exc

        if not isinstance(payload, list):
            raise OpenF1Error(
                f"OpenF1 {endpoint!r} returned {type(payload).__name__}, expected a list"
            )
        return payload
