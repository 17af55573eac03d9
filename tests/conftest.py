"""
Pytest configuration and fixtures for the resume toolkit tests
"""

import os
import sys
import csv
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add the project root to the path so tests can import config and app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.models.schemas import Record
from app.services.identity import identity_of

CSV_HEADER = ["meeting_id", "uuid", "topic", "host_email", "start_time", "uuid_base64"]


def make_row(number: int, uuid: Optional[str] = None, uuid_base64: str = "") -> Dict[str, str]:
    return {
        "meeting_id": str(80000000000 + number),
        "uuid": f"uuid-{number:03d}==" if uuid is None else uuid,
        "topic": f"Session {number}",
        "host_email": f"coach{number % 4}@example.com",
        "start_time": f"2025-06-{(number % 28) + 1:02d}T15:00:00Z",
        "uuid_base64": uuid_base64
    }


def make_records(count: int) -> List[Record]:
    records = []
    for number in range(1, count + 1):
        row = make_row(number)
        records.append(Record(position=number, row=row, identity=identity_of(row)))
    return records


@pytest.fixture
def write_csv(tmp_path: Path):
    """Write rows to a CSV file in tmp_path and return its path as a string"""
    def _write(rows: List[Dict[str, str]], header: List[str] = CSV_HEADER, name: str = "recordings.csv") -> str:
        path = tmp_path / name
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return str(path)
    return _write


@pytest.fixture
def recordings_csv(write_csv) -> str:
    """A 300-row export like the one the import was resumed from"""
    return write_csv([make_row(n) for n in range(1, 301)])


@pytest.fixture
def checkpoint_path(tmp_path: Path) -> str:
    return str(tmp_path / "checkpoint.json")
