#!/usr/bin/env python
"""
Re-import a single Zoom recording by UUID.

The recording is fetched and uploaded in this process; no checkpoint is read or
written.

Usage:
    python scripts/process_single_uuid.py UUID [--log-level LOG_LEVEL]
"""

import os
import sys
import json
import argparse
import logging
import asyncio

# Add the parent directory to the path so we can import from the app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from config import Settings
from app.log_config import setup_logging
from app.services.credentials import load_google_credentials
from app.services.drive_manager import DriveManager
from app.services.errors import ResumeError
from app.services.recording_driver import ZoomRecordingDriver
from app.services.zoom_client import ZoomClient

logger = logging.getLogger(__name__)


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Re-import one Zoom recording by UUID")
    parser.add_argument("uuid", type=str, help="Meeting instance UUID")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=config.LOG_LEVEL, help="Set the logging level")
    args = parser.parse_args(argv)
    setup_logging("process_uuid", args.log_level, config.LOG_DIR)

    logger.info(f"🎯 Processing recording {args.uuid}")
    try:
        settings = Settings.from_env()
        credentials = load_google_credentials(settings.google_env)
        driver = ZoomRecordingDriver(ZoomClient(settings), DriveManager(settings, credentials=credentials))
        metadata = await driver.process_uuid(args.uuid)
    except (ResumeError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    print(json.dumps(metadata, indent=2))
    logger.info("✅ Recording processed")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
