#!/usr/bin/env python
"""
Resume a recordings import from the checkpoint.

This script will:
1. Read the recordings CSV and the checkpoint
2. Show which recording comes next and ask for confirmation
3. Import the remaining recordings one at a time by UUID
4. Save the checkpoint after every recording, so it can be re-run after an interruption

Ctrl+C or SIGTERM stops after the recording currently being imported.

Usage:
    python scripts/resume_processing.py --csv recordings.csv [--checkpoint PATH] [--policy identity|count] [--skip N] [--yes] [--delay SECONDS] [--limit N] [--stop-on-failure | --keep-going]
"""

import os
import sys
import argparse
import logging
import asyncio

# Add the parent directory to the path so we can import from the app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from config import Settings
from app.log_config import setup_logging
from app.models.schemas import BatchResult
from app.services.batch_runner import BatchRunner
from app.services.checkpoint_store import CheckpointStore
from app.services.credentials import load_google_credentials
from app.services.drive_manager import DriveManager
from app.services.errors import ResumeError
from app.services.recording_driver import ZoomRecordingDriver
from app.services.resume_planner import SEPARATOR, format_summary
from app.services.resume_state import prepare_resume
from app.services.zoom_client import ZoomClient

logger = logging.getLogger(__name__)


def confirm(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("yes", "y")


def print_result(result: BatchResult, checkpoint_path: str) -> None:
    print(f"\n{SEPARATOR}")
    print("📊 PROCESSING SUMMARY")
    print(SEPARATOR)
    print(f"✅ Successfully processed in this session: {result.succeeded}")
    print(f"❌ Errors in this session: {len(result.failed)}")
    if result.skipped_already_done:
        print(f"⏭️ Skipped (already processed): {result.skipped_already_done}")
    print(SEPARATOR)

    for failure in result.failed:
        print(f"   - Recording {failure.position}: {failure.topic or 'No Topic'}")
        print(f"     UUID: {failure.identity or 'NO UUID'}")
        print(f"     Meeting ID: {failure.meeting_id}")
        print(f"     Error: {failure.error}")

    if result.unrecorded_successes:
        print(f"\n⚠️ {result.unrecorded_successes} recordings succeeded after an earlier failure; "
              f"the count checkpoint could not record them and they will be imported again")
    if result.stopped_early or result.failed:
        print("\n📍 Run this script again to resume; failed recordings will be retried")
    print(f"💾 Progress saved to {checkpoint_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resume importing recordings from a CSV")
    parser.add_argument("--csv", type=str, default=config.RESUME_CSV_FILE, help="Recordings CSV file")
    parser.add_argument("--checkpoint", type=str, default=config.CHECKPOINT_FILE, help="Checkpoint file")
    parser.add_argument("--policy", type=str, choices=["identity", "count"], default=config.CHECKPOINT_POLICY,
                        help="Skip by UUID (identity) or by leading row count (count)")
    parser.add_argument("--skip", type=int,
                        help="Rows already processed when no checkpoint exists yet (count policy)")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    parser.add_argument("--delay", type=float, default=config.PROCESSING_DELAY,
                        help="Seconds to wait between recordings")
    parser.add_argument("--limit", type=int, help="Process at most this many recordings")
    parser.add_argument("--stop-on-failure", action="store_const", const=True, dest="stop_on_failure",
                        help="Stop at the first failed recording (default with the count policy)")
    parser.add_argument("--keep-going", action="store_const", const=False, dest="stop_on_failure",
                        help="Continue past failed recordings (default with the identity policy)")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=config.LOG_LEVEL, help="Set the logging level")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("resume_processing", args.log_level, config.LOG_DIR)

    store = CheckpointStore(args.checkpoint, args.policy)
    try:
        _, checkpoint, summary = prepare_resume(args.csv, store, skip=args.skip)
    except (ResumeError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    print(format_summary(summary))
    pending = len(summary.plan.pending_records)
    if not pending:
        return 0

    if args.limit is not None:
        pending = min(pending, args.limit)
    if not args.yes and not confirm(f"\n⚠️  This will process {pending} recordings. Continue? (yes/no): "):
        print("❌ Processing cancelled by user.")
        return 0

    try:
        settings = Settings.from_env()
        credentials = load_google_credentials(settings.google_env)
        driver = ZoomRecordingDriver(ZoomClient(settings), DriveManager(settings, credentials=credentials))
    except (ResumeError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    stop_on_failure = args.stop_on_failure
    if stop_on_failure is None:
        # A count checkpoint cannot record successes that follow a failed row
        stop_on_failure = args.policy == "count"

    runner = BatchRunner(
        driver,
        store,
        delay_seconds=args.delay,
        stop_on_failure=stop_on_failure,
        limit=args.limit,
        initial_checkpoint=checkpoint,
        handle_signals=True
    )
    result = await runner.run(summary)
    print_result(result, args.checkpoint)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
