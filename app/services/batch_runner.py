import signal
import asyncio
import logging
from typing import List, Optional

from app.models.schemas import BatchResult, Checkpoint, DryRunSummary, Record
from app.services.checkpoint_store import CheckpointStore

logger = logging.getLogger(__name__)


class BatchDriver:
    """Imports one recording. Subclasses raise to signal failure."""

    async def process(self, record: Record) -> None:
        raise NotImplementedError


class BatchRunner:
    """
    Feeds pending records to a driver one at a time, saving progress after each.

    Only one record is ever in flight. The checkpoint is advanced and written
    after the driver confirms a record, so an interruption at any point leaves a
    checkpoint that names exactly the records that finished.
    """

    def __init__(
        self,
        driver: BatchDriver,
        store: CheckpointStore,
        delay_seconds: float = 0,
        stop_on_failure: bool = False,
        limit: Optional[int] = None,
        initial_checkpoint: Optional[Checkpoint] = None,
        handle_signals: bool = False
    ):
        self.driver = driver
        self.store = store
        self.delay_seconds = delay_seconds
        self.stop_on_failure = stop_on_failure
        self.limit = limit
        self.initial_checkpoint = initial_checkpoint
        self.handle_signals = handle_signals
        self._stop_requested = False

    def _install_signal_handlers(self) -> List[int]:
        loop = asyncio.get_running_loop()
        installed = []
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.request_stop)
                installed.append(signum)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Cannot handle signal {signum} on this platform")
        return installed

    def request_stop(self) -> None:
        """Stop launching new records; the one in flight is allowed to finish."""
        if not self._stop_requested:
            logger.warning("🛑 Stop requested, finishing the current recording")
        self._stop_requested = True

    async def run(self, summary: DryRunSummary) -> BatchResult:
        """
        Process the records of a previewed plan.

        Args:
            summary: Dry-run summary produced by ``summarize``; the preview has
                to exist before any recording is imported

        Returns:
            Counts of attempted, succeeded and failed records
        """
        if not isinstance(summary, DryRunSummary):
            raise TypeError("BatchRunner.run needs the DryRunSummary shown to the operator")

        pending = summary.plan.pending_records
        if self.limit is not None:
            pending = pending[:self.limit]

        result = BatchResult()
        if not pending:
            logger.info("✅ All recordings have been processed")
            return result

        first = pending[0]
        logger.info(f"🚀 Starting with recording #{first.position}: {first.topic or 'No Topic'} "
                    f"({first.identity or 'NO UUID'}), {len(pending)} to process")

        installed = self._install_signal_handlers() if self.handle_signals else []
        try:
            with self.store.session(initial=self.initial_checkpoint, handle_sigterm=not installed) as checkpoint:
                await self._run_records(pending, checkpoint, result, summary.plan.total_records)
        finally:
            loop = asyncio.get_running_loop()
            for signum in installed:
                loop.remove_signal_handler(signum)

        logger.info(f"Batch finished: {result.succeeded} succeeded, {len(result.failed)} failed, "
                    f"{result.skipped_already_done} skipped")
        return result

    async def _run_records(self, pending: List[Record], checkpoint: Checkpoint, result: BatchResult, total: int) -> None:
        for index, record in enumerate(pending):
            if self._stop_requested:
                result.stopped_early = True
                break

            if checkpoint.is_completed(record):
                logger.info(f"⏭️ Recording #{record.position} already processed, skipping")
                result.skipped_already_done += 1
                continue

            succeeded = await self._process_one(record, checkpoint, result, total)
            if not succeeded and self.stop_on_failure:
                result.stopped_early = index < len(pending) - 1
                break

            if self.delay_seconds and index < len(pending) - 1 and not self._stop_requested:
                logger.info(f"⏳ Waiting {self.delay_seconds} seconds before next recording...")
                await asyncio.sleep(self.delay_seconds)

    async def _process_one(self, record: Record, checkpoint: Checkpoint, result: BatchResult, total: int) -> bool:
        result.attempted += 1
        logger.info(f"🔄 Processing Recording {record.position}/{total}: {record.topic or 'No Topic'} "
                    f"(UUID: {record.identity or 'NO UUID'})")
        try:
            await self.driver.process(record)
        except Exception as e:
            logger.error(f"❌ Error processing recording {record.position}: {e}")
            result.failed.append(checkpoint.record_failure(record, str(e)))
            self.store.save(checkpoint)
            return False

        if not checkpoint.record_success(record):
            result.unrecorded_successes += 1
            logger.warning(f"Recording #{record.position} succeeded but the checkpoint could not advance past it")
        self.store.save(checkpoint)
        result.succeeded += 1
        logger.info(f"✅ Recording {record.position} processed successfully")
        return True
