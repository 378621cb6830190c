"""Pydantic request/response schemas for the replay Web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    version: str


class LoadRequest(BaseModel):
    """Session arrays in OpenF1 row format."""

    drivers: list[dict[str, Any]]
    positions: list[dict[str, Any]] = Field(default_factory=list)
    laps: list[dict[str, Any]] = Field(default_factory=list)
    messages: list[dict[str, Any]] = Field(default_factory=list)


class FetchRequest(BaseModel):
    session_key: int
    refresh: bool = False
    """Ignore the cache and fetch from OpenF1 again."""


class LoadResponse(BaseModel):
    source: str
    session_key: int | None = None
    counts: dict[str, int]
    timeline_events: int


class SpeedRequest(BaseModel):
    speed: int


class BoardRowModel(BaseModel):
    position: int
    driver_number: int
    label: str
    team_name: str
    team_colour: str
    change: str
    lap_number: int | None = None
    is_pit_out_lap: bool = False
    times: dict[str, str]
    classes: dict[str, str]


class MessageModel(BaseModel):
    timestamp: str | None
    category: str
    flag: str
    message: str


class StateResponse(BaseModel):
    status: str
    speed: int
    period_s: float
    cursor_index: int
    timeline_length: int
    board: list[BoardRowModel]
    messages: list[MessageModel]
    overall_best: dict[str, float | None]


class NotificationModel(BaseModel):
    id: int
    text: str


class NotificationsResponse(BaseModel):
    notifications: list[NotificationModel]
