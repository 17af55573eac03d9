import os
import logging
from typing import List, Optional, Tuple

from app.models.schemas import Checkpoint, DryRunSummary, Record
from app.services.checkpoint_store import CheckpointStore
from app.services.record_source import load_records
from app.services.resume_planner import log_warnings, plan_resume, summarize

logger = logging.getLogger(__name__)


def starting_checkpoint(store: CheckpointStore, skip: Optional[int] = None) -> Checkpoint:
    """
    Load the checkpoint, or build the first one from a fixed skip count.

    ``skip`` only applies before any checkpoint has been written; once progress
    is on disk the file is authoritative.
    """
    if skip is not None:
        if store.policy != "count":
            raise ValueError("--skip only makes sense with the count policy")
        if skip < 0:
            raise ValueError("--skip cannot be negative")
        if not os.path.exists(store.path):
            logger.info(f"⏭️ No checkpoint yet, skipping first {skip} recordings")
            return Checkpoint(policy="count", completed_count=skip)
        logger.warning(f"Checkpoint {store.path} exists, ignoring --skip {skip}")
    return store.load()


def prepare_resume(
    csv_path: str,
    store: CheckpointStore,
    skip: Optional[int] = None,
    head: int = 5,
    tail: int = 3
) -> Tuple[List[Record], Checkpoint, DryRunSummary]:
    """
    Load the CSV and checkpoint and build the dry-run summary.

    Raises:
        InputNotFoundError, InputParseError, CheckpointCorruptError
    """
    records = load_records(csv_path)
    checkpoint = starting_checkpoint(store, skip)
    plan = plan_resume(records, checkpoint)
    log_warnings(plan)
    return records, checkpoint, summarize(plan, records, head=head, tail=tail)
