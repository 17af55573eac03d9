#!/usr/bin/env python
"""
Verify the resume state of a recordings import without processing anything.

Reads the recordings CSV and the checkpoint and prints what a resumed run would
do: total recordings, how many are skipped, the first recording to process, the
last recordings in the file, and which pending recordings have no UUID.

Exits with 1 only when the CSV or checkpoint cannot be used. Having nothing left
to process is not an error.

Usage:
    python scripts/verify_resume_state.py --csv recordings.csv [--checkpoint PATH] [--policy identity|count] [--skip N] [--tail N]
"""

import os
import sys
import argparse
import logging

# Add the parent directory to the path so we can import from the app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from app.log_config import setup_logging
from app.services.checkpoint_store import CheckpointStore
from app.services.errors import ResumeError
from app.services.resume_planner import format_summary
from app.services.resume_state import prepare_resume

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Verify resume state of a recordings import")
    parser.add_argument("--csv", type=str, default=config.RESUME_CSV_FILE,
                        help="Recordings CSV file")
    parser.add_argument("--checkpoint", type=str, default=config.CHECKPOINT_FILE,
                        help="Checkpoint file")
    parser.add_argument("--policy", type=str, choices=["identity", "count"], default=config.CHECKPOINT_POLICY,
                        help="Skip by UUID (identity) or by leading row count (count)")
    parser.add_argument("--skip", type=int,
                        help="Rows already processed when no checkpoint exists yet (count policy)")
    parser.add_argument("--head", type=int, default=5, help="Number of upcoming recordings to list")
    parser.add_argument("--tail", type=int, default=3, help="Number of trailing recordings to list")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=config.LOG_LEVEL, help="Set the logging level")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("verify_resume", args.log_level, config.LOG_DIR)

    print("🔍 Testing Resume Setup...\n")
    store = CheckpointStore(args.checkpoint, args.policy)
    try:
        _, _, summary = prepare_resume(args.csv, store, skip=args.skip, head=args.head, tail=args.tail)
    except (ResumeError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    print(format_summary(summary))
    if summary.first_pending is not None:
        print("\n✅ Check complete. Run scripts/resume_processing.py to start processing.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
