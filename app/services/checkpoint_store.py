"""
Durable import progress for resumable recording batches.

Two policies are supported:

- ``count``: the checkpoint is the number of leading CSV rows already imported.
  Simple, but only correct while the CSV keeps the same row order between runs.
  A regenerated export with rows in a different order makes it skip rows that
  were never imported and repeat ones that were.
- ``identity``: the checkpoint is the set of imported recording UUIDs. Rows are
  matched by UUID, so reordering or re-exporting the CSV is harmless. This is
  the default.

The checkpoint is written as indented JSON so it can be inspected (or fixed)
by hand.
"""

import os
import json
import signal
import logging
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from pydantic import ValidationError

from app.models.schemas import Checkpoint, CheckpointPolicy
from app.services.errors import CheckpointCorruptError

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Single owner of a checkpoint file; all progress is written through it."""

    def __init__(self, path: str, policy: CheckpointPolicy = "identity"):
        if policy not in ("identity", "count"):
            raise ValueError(f"Unknown checkpoint policy: {policy}")
        self.path = path
        self.policy = policy
        self._last_persisted: Optional[Checkpoint] = None

    def load(self) -> Checkpoint:
        """
        Read the checkpoint, or start an empty one on the first run.

        Raises:
            CheckpointCorruptError: If the file cannot be read as a checkpoint of
                this store's policy
        """
        if not os.path.exists(self.path):
            logger.info(f"No checkpoint at {self.path}, starting from the beginning")
            checkpoint = Checkpoint(policy=self.policy)
            self._last_persisted = checkpoint.model_copy(deep=True)
            return checkpoint

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CheckpointCorruptError(self.path, f"unreadable JSON: {e}")

        if not isinstance(data, dict):
            raise CheckpointCorruptError(self.path, "top level is not an object")

        if "lastProcessed" in data:
            data = self._convert_legacy(data)

        try:
            checkpoint = Checkpoint.model_validate(data)
        except ValidationError as e:
            raise CheckpointCorruptError(self.path, f"{e.error_count()} invalid field(s): {e.errors()[0]['msg']}")

        if checkpoint.policy != self.policy:
            raise CheckpointCorruptError(
                self.path,
                f"written with the '{checkpoint.policy}' policy but '{self.policy}' was requested"
            )

        logger.info(
            f"📍 Found checkpoint: {checkpoint.completed_count} leading rows, "
            f"{len(checkpoint.completed_identities)} UUIDs, {len(checkpoint.failures)} failures"
        )
        self._last_persisted = checkpoint.model_copy(deep=True)
        return checkpoint

    def _convert_legacy(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Translate the ``lastProcessed`` checkpoint written by the old resume script."""
        last_processed = data.get("lastProcessed")
        if not isinstance(last_processed, int) or isinstance(last_processed, bool):
            raise CheckpointCorruptError(self.path, "lastProcessed is not an integer")

        processed = data.get("successfullyProcessed") or []
        if not isinstance(processed, list):
            raise CheckpointCorruptError(self.path, "successfullyProcessed is not a list")
        identities = [item.get("uuid") for item in processed if isinstance(item, dict) and item.get("uuid")]

        failures = []
        for item in data.get("errors") or []:
            if isinstance(item, dict) and isinstance(item.get("recordingNum"), int):
                failure = {
                    "position": item["recordingNum"],
                    "identity": item.get("uuid"),
                    "meeting_id": str(item.get("meetingId") or ""),
                    "topic": item.get("topic") or "",
                    "error": item.get("error") or "unknown error"
                }
                if item.get("timestamp"):
                    failure["timestamp"] = item["timestamp"]
                failures.append(failure)

        logger.warning(f"Converting legacy checkpoint format in {self.path}")
        if self.policy == "identity" and last_processed > len(identities):
            logger.warning(
                f"Legacy checkpoint skipped {last_processed} rows but names only {len(identities)} UUIDs; "
                f"unnamed rows will be treated as pending"
            )
        if self.policy == "count":
            # The old script advanced lastProcessed past failed rows too
            failed_positions = sorted(f["position"] for f in failures)
            completed = last_processed
            if failed_positions:
                completed = min(completed, failed_positions[0] - 1)
            return {"policy": "count", "completed_count": completed, "failures": failures,
                    "last_update": data.get("lastUpdate")}
        return {"policy": "identity", "completed_identities": identities, "failures": failures,
                "last_update": data.get("lastUpdate")}

    def save(self, checkpoint: Checkpoint) -> None:
        """
        Atomically persist the checkpoint.

        The new contents are written to a temporary file next to the checkpoint,
        synced to disk, then renamed over it, so a crash leaves either the old or
        the new checkpoint and never a partial one.

        Raises:
            ValueError: If the checkpoint has less progress than the one this
                store last loaded or saved
        """
        if checkpoint.policy != self.policy:
            raise ValueError(f"Cannot save a '{checkpoint.policy}' checkpoint to a '{self.policy}' store")
        if self._last_persisted is not None and not checkpoint.covers(self._last_persisted):
            raise ValueError("Refusing to save a checkpoint with less progress than the persisted one")

        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=".checkpoint-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(checkpoint.model_dump_json(indent=2))
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

        self._last_persisted = checkpoint.model_copy(deep=True)
        logger.debug(f"Checkpoint saved to {self.path}")

    @contextmanager
    def session(self, initial: Optional[Checkpoint] = None, handle_sigterm: bool = True) -> Iterator[Checkpoint]:
        """
        Load the checkpoint and guarantee it is saved when the block exits.

        The save happens on normal exit, on exceptions and on Ctrl+C. While the
        session is open in the main thread, SIGTERM is turned into SystemExit so
        the final save still runs, unless the caller handles SIGTERM itself.

        Args:
            initial: Checkpoint to start from when no file has been written yet
            handle_sigterm: Install the SIGTERM handler for the session
        """
        if initial is not None and not os.path.exists(self.path):
            checkpoint = initial
            self.save(checkpoint)
        else:
            checkpoint = self.load()
        previous_handler = None
        install_handler = handle_sigterm and threading.current_thread() is threading.main_thread()

        if install_handler:
            previous_handler = signal.getsignal(signal.SIGTERM)
            signal.signal(signal.SIGTERM, _raise_system_exit)

        try:
            yield checkpoint
        finally:
            try:
                self.save(checkpoint)
                logger.info(f"💾 Progress saved to {self.path}")
            finally:
                if install_handler:
                    signal.signal(signal.SIGTERM, previous_handler or signal.SIG_DFL)


def _raise_system_exit(signum, frame):
    logger.warning("🛑 Process terminated, saving checkpoint")
    raise SystemExit(128 + signum)
