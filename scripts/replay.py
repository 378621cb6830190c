"""Terminal replay — prints the position board as a session plays back.

Press Ctrl+C to quit.

Usage:
    uv run python scripts/replay.py --session-key 9994
    uv run python scripts/replay.py --session-key 9994 --speed 3 --db race_replay.db
    uv run python scripts/replay.py --file session.json      # {"drivers": [...], ...}
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time

from dotenv import load_dotenv

load_dotenv()

from race_replay.feeds.cache import SessionCache  # noqa: E402
from race_replay.feeds.openf1 import DEFAULT_BASE_URL, OpenF1Client, SessionData  # noqa: E402
from race_replay.simulation.controller import PlaybackConfig, PlaybackController  # noqa: E402
from race_replay.timing.best_times import Metric, TimeClass  # noqa: E402
from race_replay.timing.deltas import PositionChange  # noqa: E402
from race_replay.timing.formatter import format_gap  # noqa: E402

_CHANGE_MARK = {
    PositionChange.IMPROVED: "▲",
    PositionChange.WORSENED: "▼",
    PositionChange.UNCHANGED: " ",
}
_CLASS_MARK = {
    TimeClass.OVERALL_BEST: "*",
    TimeClass.PERSONAL_BEST: "+",
    TimeClass.ORDINARY: " ",
}


def _load_session(args: argparse.Namespace) -> tuple[SessionData, bool]:
    """Return the session rows and whether they came fresh from OpenF1."""
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            raw = json.load(fh)
        return SessionData(
            session_key=0,
            drivers=raw.get("drivers", []),
            positions=raw.get("positions", []),
            laps=raw.get("laps", []),
            messages=raw.get("messages", []),
        ), False

    if not args.refresh:
        cache = SessionCache(args.db)
        try:
            data = cache.load(args.session_key)
        finally:
            cache.close()
        if data is not None:
            return data, False

    base_url = os.environ.get("OPENF1_BASE_URL", DEFAULT_BASE_URL)
    with OpenF1Client(base_url=base_url) as client:
        return client.fetch_session(args.session_key), True


def _save_session(db_path: str, data: SessionData) -> None:
    cache = SessionCache(db_path)
    try:
        cache.save(data)
    finally:
        cache.close()


def _print_board(ctl: PlaybackController) -> None:
    best_lap = ctl.tracker.overall_best(Metric.LAP)
    print("\033[2J\033[H", end="")  # clear screen
    print(
        f"  {ctl.state.value.upper():7s}  {ctl.speed}x  "
        f"event {ctl.cursor.index}/{len(ctl.cursor.timeline)}"
    )
    print()
    print("  POS  DRIVER  LAP        GAP      S1        S2        S3")
    for row in ctl.board():
        times = row.formatted_times()
        marks = {m: _CLASS_MARK[row.lap_classes[m]] if row.lap_classes else " " for m in Metric}
        lap_s = row.lap.lap_duration if row.lap else None
        gap = format_gap(lap_s - best_lap) if lap_s is not None and best_lap is not None else "-"
        print(
            f"  {row.position:>3d}{_CHANGE_MARK[row.change]} {row.label:<6s}  "
            f"{times[Metric.LAP]:>9s}{marks[Metric.LAP]} {gap:>7s}  "
            f"{times[Metric.S1]:>7s}{marks[Metric.S1]}  "
            f"{times[Metric.S2]:>7s}{marks[Metric.S2]}  "
            f"{times[Metric.S3]:>7s}{marks[Metric.S3]}"
        )
    if ctl.snapshot.messages:
        print()
        for msg in ctl.snapshot.messages[:3]:
            print(f"  [{msg.category}] {msg.free_text}")
    sys.stdout.flush()


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay an F1 session in the terminal")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--session-key", type=int, help="OpenF1 session key")
    src.add_argument("--file", help="JSON file with drivers/positions/laps/messages arrays")
    ap.add_argument("--db", default=os.environ.get("RACE_REPLAY_DB", "race_replay.db"),
                    help="SQLite session cache path")
    ap.add_argument("--refresh", action="store_true", help="Ignore the cache and refetch")
    ap.add_argument("--speed", type=int, default=1, help="Speed multiplier (1-3)")
    ap.add_argument("--interval", type=float, default=2.0, help="Tick period at 1x, seconds")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data, fetched = _load_session(args)
    alerts: list[str] = []

    with PlaybackController(
        PlaybackConfig(base_interval_s=args.interval),
        on_message=alerts.append,
    ) as ctl:
        ctl.load_data(data.drivers, data.positions, data.laps, data.messages)
        if fetched:
            _save_session(args.db, data)  # only rows that loaded cleanly are cached
        ctl.set_speed(args.speed)
        ctl.set_running(True)

        last_index = -1
        try:
            while True:
                if ctl.cursor.index != last_index:
                    last_index = ctl.cursor.index
                    _print_board(ctl)
                    while alerts:
                        print(f"  ⚑ {alerts.pop(0)}", flush=True)
                time.sleep(0.05)
        except KeyboardInterrupt:
            pass
    print("\nReplay stopped.")


if __name__ == "__main__":
    main()
