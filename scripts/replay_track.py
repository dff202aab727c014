"""Replay a recorded GPX/CSV track through the live tracker.

Usage:
  uv run python scripts/replay_track.py run.gpx
  uv run python scripts/replay_track.py run.csv --db tracker.db --speed 10
  uv run python scripts/replay_track.py run.gpx --user alice -v

Each fix is pushed through SessionTracker exactly as a live location push
would be, so positions are buffered and flushed in batches to the store.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from run_tracker.config import TrackerSettings  # noqa: E402
from run_tracker.location.readers import TrackFileError, read_track  # noqa: E402
from run_tracker.location.sources import ReplayLocationSource  # noqa: E402
from run_tracker.presentation.console import ConsolePresenter  # noqa: E402
from run_tracker.store import open_store  # noqa: E402
from run_tracker.tracking.tracker import SessionTracker  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay a GPX/CSV track through the tracker")
    ap.add_argument("track", help="Path to a .gpx or .csv track file")
    ap.add_argument("--db", default=None, help="SQLite database path (overrides RUN_TRACKER_DB)")
    ap.add_argument("--user", default=None, help="User id attached to stored positions")
    ap.add_argument(
        "--speed",
        type=float,
        default=None,
        help="Real-time multiplier (e.g. 10 = ten times faster); default is instant",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        fixes = read_track(args.track)
    except TrackFileError as exc:
        print(f"Cannot read track: {exc}", file=sys.stderr)
        sys.exit(1)
    if not fixes:
        print("Track contains no points.", file=sys.stderr)
        sys.exit(1)

    settings = TrackerSettings.from_env()
    if args.db:
        settings = dataclasses.replace(settings, db_path=args.db)
    store = open_store(settings)
    source = ReplayLocationSource(fixes, speed=args.speed)
    presenter = ConsolePresenter()
    tracker = SessionTracker(
        source,
        store,
        presenter,
        user_id=args.user or settings.user_id,
        batch_size=settings.batch_size,
        batch_interval_s=settings.batch_interval_s,
        max_buffer=settings.max_buffer,
        clock=source.clock,
    )

    print(f"Track    : {args.track} ({len(fixes)} fixes)")
    print(f"Store    : {type(store).__name__}")
    tracker.start()
    try:
        source.replay()
    except KeyboardInterrupt:
        print("\nReplay interrupted.")
    finally:
        tracker.stop()
        store.close()

    display = presenter.display(tracker.metrics())
    print()
    print(f"Session  : {tracker.session_id}")
    print(f"Distance : {display['distance']}")
    print(f"Duration : {display['duration']}")
    print(f"Pace     : {display['pace']}")
    if len(tracker.buffer):
        print(f"WARNING: {len(tracker.buffer)} position(s) could not be stored.", file=sys.stderr)


if __name__ == "__main__":
    main()
