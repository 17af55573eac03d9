#!/usr/bin/env python
"""
Print recording counts for the tabs of the master index spreadsheet.

Usage:
    python scripts/check_sheets_count.py [--spreadsheet-id ID] [--tab TAB ...] [--expected N] [--log-level LOG_LEVEL]
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
from app.services.credentials import load_google_credentials
from app.services.errors import CredentialsError
from app.services.sheets_client import SheetsClient

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Check recording counts in Google Sheets")
    parser.add_argument("--spreadsheet-id", type=str, default=settings.master_index_sheet_id,
                        help="Spreadsheet ID (default: MASTER_INDEX_SHEET_ID)")
    parser.add_argument("--tab", action="append", dest="tabs", help="Tab to count (repeatable)")
    parser.add_argument("--expected", type=int, help="Minimum number of recordings expected in every tab")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=config.LOG_LEVEL, help="Set the logging level")
    args = parser.parse_args(argv)
    setup_logging("check_sheets_count", args.log_level, config.LOG_DIR)

    if not args.spreadsheet_id:
        logger.error("❌ No spreadsheet ID; set MASTER_INDEX_SHEET_ID or pass --spreadsheet-id")
        return 1

    try:
        credentials = load_google_credentials(settings.google_env)
    except CredentialsError as e:
        logger.error(f"❌ {e}")
        return 1

    try:
        client = SheetsClient(args.spreadsheet_id, credentials=credentials)
        counts = client.count_tabs(args.tabs or config.SHEET_TABS)
    except Exception as e:
        logger.error(f"❌ Could not read from Google Sheets: {e}")
        return 1

    print("📊 Google Sheets Recording Counts:")
    print("==================================")
    for count in counts:
        print(f"{count.tab} tab: {count.rows} recordings")

    distinct = {count.rows for count in counts}
    if len(distinct) > 1:
        print("\n⚠️  Tabs disagree on the number of recordings")
    elif args.expected is not None and counts and counts[0].rows < args.expected:
        print(f"\n⚠️  Fewer than the expected {args.expected} recordings")
    else:
        print("\n✅ All tabs agree")
    return 0


if __name__ == "__main__":
    sys.exit(main())
