#!/usr/bin/env python
"""
Mark recordings already present in the master index sheet as processed.

Reads the UUID column of a sheet tab and adds every value to an identity
checkpoint, so a resumed import skips them.

Usage:
    python scripts/seed_checkpoint_from_sheet.py [--checkpoint PATH] [--spreadsheet-id ID] [--tab TAB] [--column COLUMN]
"""

import os
import sys
import argparse
import logging

# Add the parent directory to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from config import Settings
from app.log_config import setup_logging
from app.services.checkpoint_store import CheckpointStore
from app.services.credentials import load_google_credentials
from app.services.errors import CredentialsError, ResumeError
from app.services.sheets_client import SheetsClient

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Seed an identity checkpoint from a sheet column")
    parser.add_argument("--checkpoint", type=str, default=config.CHECKPOINT_FILE, help="Checkpoint file")
    parser.add_argument("--spreadsheet-id", type=str, default=settings.master_index_sheet_id,
                        help="Spreadsheet ID (default: MASTER_INDEX_SHEET_ID)")
    parser.add_argument("--tab", type=str, default=config.SHEET_TABS[0], help="Tab holding processed recordings")
    parser.add_argument("--column", type=str, default="uuid", help="Header of the UUID column")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=config.LOG_LEVEL, help="Set the logging level")
    args = parser.parse_args(argv)
    setup_logging("seed_checkpoint", args.log_level, config.LOG_DIR)

    if not args.spreadsheet_id:
        logger.error("❌ No spreadsheet ID; set MASTER_INDEX_SHEET_ID or pass --spreadsheet-id")
        return 1

    try:
        credentials = load_google_credentials(settings.google_env)
    except CredentialsError as e:
        logger.error(f"❌ {e}")
        return 1

    try:
        identities = SheetsClient(args.spreadsheet_id, credentials=credentials).column_values(args.tab, args.column)
    except Exception as e:
        logger.error(f"❌ Could not read '{args.column}' from '{args.tab}': {e}")
        return 1

    logger.info(f"Found {len(identities)} UUIDs in '{args.tab}'")
    store = CheckpointStore(args.checkpoint, "identity")
    try:
        with store.session() as checkpoint:
            added = checkpoint.seed_identities(identities)
    except ResumeError as e:
        logger.error(f"❌ {e}")
        return 1

    logger.info(f"✅ Added {added} new UUIDs; checkpoint now lists {len(checkpoint.completed_identities)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
