import asyncio

import pytest

from app.models.schemas import Checkpoint, Record
from app.services.batch_runner import BatchDriver, BatchRunner
from app.services.checkpoint_store import CheckpointStore
from app.services.resume_planner import plan_resume, summarize
from conftest import make_records


class RecordingDriver(BatchDriver):
    """Driver that remembers what it saw and fails on chosen positions."""

    def __init__(self, fail_positions=(), store=None, on_process=None):
        self.fail_positions = set(fail_positions)
        self.store = store
        self.on_process = on_process
        self.processed = []
        self.checkpoints_seen = []

    async def process(self, record: Record) -> None:
        if self.store is not None:
            self.checkpoints_seen.append(self.store.load())
        self.processed.append(record.position)
        if self.on_process:
            self.on_process(record)
        if record.position in self.fail_positions:
            raise RuntimeError(f"Zoom API error for recording {record.position}")


def preview(records, checkpoint):
    return summarize(plan_resume(records, checkpoint), records)


def test_run_requires_a_dry_run_summary(checkpoint_path):
    records = make_records(3)
    runner = BatchRunner(RecordingDriver(), CheckpointStore(checkpoint_path, "count"))
    plan = plan_resume(records, Checkpoint(policy="count"))

    with pytest.raises(TypeError):
        asyncio.run(runner.run(plan))


def test_run_processes_pending_and_saves_after_each(checkpoint_path):
    records = make_records(300)
    store = CheckpointStore(checkpoint_path, "count")
    store.save(Checkpoint(policy="count", completed_count=297))
    driver = RecordingDriver(store=CheckpointStore(checkpoint_path, "count"))

    result = asyncio.run(BatchRunner(driver, store).run(preview(records, store.load())))

    assert driver.processed == [298, 299, 300]
    # Each record starts only after the previous one was written to disk
    assert [c.completed_count for c in driver.checkpoints_seen] == [297, 298, 299]
    assert result.attempted == 3
    assert result.succeeded == 3
    assert result.failed == []
    assert CheckpointStore(checkpoint_path, "count").load().completed_count == 300


def test_count_checkpoint_stays_before_a_failure(checkpoint_path):
    records = make_records(6)
    store = CheckpointStore(checkpoint_path, "count")
    driver = RecordingDriver(fail_positions={3})

    result = asyncio.run(BatchRunner(driver, store).run(preview(records, store.load())))

    assert driver.processed == [1, 2, 3, 4, 5, 6]
    assert result.succeeded == 5
    assert result.unrecorded_successes == 3
    assert [f.position for f in result.failed] == [3]

    checkpoint = CheckpointStore(checkpoint_path, "count").load()
    assert checkpoint.completed_count == 2
    assert checkpoint.failures[0].error == "Zoom API error for recording 3"
    assert plan_resume(records, checkpoint).first_pending.position == 3


def test_identity_checkpoint_keeps_successes_after_a_failure(checkpoint_path):
    records = make_records(5)
    store = CheckpointStore(checkpoint_path, "identity")

    asyncio.run(BatchRunner(RecordingDriver(fail_positions={2}), store).run(preview(records, store.load())))

    checkpoint = CheckpointStore(checkpoint_path, "identity").load()
    assert [r.position for r in plan_resume(records, checkpoint).pending_records] == [2]


def test_stop_on_failure(checkpoint_path):
    records = make_records(5)
    store = CheckpointStore(checkpoint_path, "count")
    driver = RecordingDriver(fail_positions={2})

    result = asyncio.run(BatchRunner(driver, store, stop_on_failure=True).run(preview(records, store.load())))

    assert driver.processed == [1, 2]
    assert result.stopped_early
    assert CheckpointStore(checkpoint_path, "count").load().completed_count == 1


def test_request_stop_finishes_current_record(checkpoint_path):
    records = make_records(5)
    store = CheckpointStore(checkpoint_path, "count")
    runner = BatchRunner(RecordingDriver(), store)
    runner.driver.on_process = lambda record: record.position == 2 and runner.request_stop()

    result = asyncio.run(runner.run(preview(records, store.load())))

    assert runner.driver.processed == [1, 2]
    assert result.stopped_early
    assert CheckpointStore(checkpoint_path, "count").load().completed_count == 2


def test_limit_caps_records_processed(checkpoint_path):
    records = make_records(10)
    store = CheckpointStore(checkpoint_path, "identity")
    driver = RecordingDriver()

    asyncio.run(BatchRunner(driver, store, limit=4).run(preview(records, store.load())))

    assert driver.processed == [1, 2, 3, 4]


def test_nothing_pending_writes_nothing(checkpoint_path):
    records = make_records(2)
    store = CheckpointStore(checkpoint_path, "count")
    driver = RecordingDriver()
    summary = preview(records, Checkpoint(policy="count", completed_count=2))

    result = asyncio.run(BatchRunner(driver, store).run(summary))

    assert result.attempted == 0
    assert driver.processed == []


def test_duplicate_uuid_rows_are_imported_once(checkpoint_path):
    records = make_records(3)
    records[2] = Record(position=3, row=records[0].row, identity=records[0].identity)
    store = CheckpointStore(checkpoint_path, "identity")
    driver = RecordingDriver()

    result = asyncio.run(BatchRunner(driver, store).run(preview(records, store.load())))

    assert driver.processed == [1, 2]
    assert result.skipped_already_done == 1


def test_fresh_plan_never_repeats_a_finished_record(checkpoint_path):
    records = make_records(8)
    store = CheckpointStore(checkpoint_path, "count")
    runner = BatchRunner(RecordingDriver(), store, limit=3)

    asyncio.run(runner.run(preview(records, store.load())))
    second = preview(records, CheckpointStore(checkpoint_path, "count").load())

    assert second.first_pending.position == 4
    assert all(r.position > 3 for r in second.plan.pending_records)


def test_initial_checkpoint_is_written_on_first_run(checkpoint_path):
    records = make_records(300)
    store = CheckpointStore(checkpoint_path, "count")
    initial = Checkpoint(policy="count", completed_count=221)
    driver = RecordingDriver()

    asyncio.run(BatchRunner(driver, store, limit=2, initial_checkpoint=initial).run(preview(records, initial)))

    assert driver.processed == [222, 223]
    assert CheckpointStore(checkpoint_path, "count").load().completed_count == 223


def test_delay_between_records(checkpoint_path, monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("app.services.batch_runner.asyncio.sleep", fake_sleep)
    records = make_records(3)
    store = CheckpointStore(checkpoint_path, "count")

    asyncio.run(BatchRunner(RecordingDriver(), store, delay_seconds=2).run(preview(records, store.load())))

    assert delays == [2, 2]
