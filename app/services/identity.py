from collections import Counter
from typing import Iterable, List, Mapping, Optional, Union

from app.models.schemas import Record

# Columns tried in order when deriving a recording's stable key
IDENTITY_FIELDS = ("uuid", "uuid_base64")


def identity_of(record: Union[Record, Mapping[str, str]]) -> Optional[str]:
    """
    Return the stable key of a recording row.

    Prefers ``uuid`` and falls back to ``uuid_base64``. Returns None when both are
    missing or blank; older exports lack UUIDs, so callers treat that as a
    warning rather than an error.
    """
    row = record.row if isinstance(record, Record) else record
    for field in IDENTITY_FIELDS:
        value = row.get(field)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def find_duplicate_identities(records: Iterable[Record]) -> List[str]:
    """List identities that appear on more than one row, in first-seen order."""
    counts = Counter(r.identity for r in records if r.identity is not None)
    return [identity for identity, count in counts.items() if count > 1]
