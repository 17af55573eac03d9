import logging
from typing import List, Sequence

from app.models.schemas import Checkpoint, DryRunSummary, Record, ResumePlan
from app.services.errors import MissingIdentityWarning
from app.services.identity import find_duplicate_identities

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 80


def plan_resume(records: Sequence[Record], checkpoint: Checkpoint) -> ResumePlan:
    """
    Work out which records still need importing.

    Args:
        records: All records from the CSV, in file order
        checkpoint: Progress loaded from the checkpoint store

    Returns:
        A ResumePlan; calling this again with the same inputs gives the same plan
    """
    if checkpoint.policy == "count":
        skip_count = checkpoint.completed_count
        pending = list(records[skip_count:])
    else:
        completed = set(checkpoint.completed_identities)
        # Rows without a UUID cannot be matched against the checkpoint
        pending = [r for r in records if r.identity is None or r.identity not in completed]
        skip_count = len(records) - len(pending)

    missing = [MissingIdentityWarning(r.position, r.topic) for r in pending if r.identity is None]

    return ResumePlan(
        policy=checkpoint.policy,
        total_records=len(records),
        skip_count=skip_count,
        pending_records=pending,
        missing_identity_count=len(missing),
        missing_identity=missing,
        duplicate_identities=find_duplicate_identities(records)
    )


def summarize(plan: ResumePlan, all_records: Sequence[Record], head: int = 5, tail: int = 3) -> DryRunSummary:
    """Build the preview shown before any recording is imported."""
    last_records = list(all_records[-tail:]) if tail > 0 else []
    return DryRunSummary(
        plan=plan,
        next_records=list(plan.pending_records[:head]),
        last_records=last_records
    )


def _describe(record: Record, indent: str = "   ") -> List[str]:
    return [
        f"{indent}Topic: {record.topic or 'No Topic'}",
        f"{indent}UUID: {record.identity or 'NO UUID'}",
        f"{indent}Meeting ID: {record.meeting_id}",
        f"{indent}Host: {record.host_email}",
        f"{indent}Start Time: {record.start_time}"
    ]


def format_summary(summary: DryRunSummary, max_missing_listed: int = 5) -> str:
    """Render the dry-run summary for the console."""
    plan = summary.plan
    lines = [
        SEPARATOR,
        "📋 RESUME STATE",
        SEPARATOR,
        f"📊 Total recordings in CSV: {plan.total_records}",
        f"📊 Checkpoint policy: {plan.policy}",
        f"⏭️ Already processed (skipped): {plan.skip_count}",
        f"📊 Recordings to process: {len(plan.pending_records)}",
        ""
    ]

    first = summary.first_pending
    if first is None:
        lines.append("✅ Nothing to process, all recordings are done")
    else:
        lines.append(f"📋 Recording #{first.position} (first to process):")
        lines.extend(_describe(first))
        if len(summary.next_records) > 1:
            lines.append("")
            lines.append(f"📋 Next {len(summary.next_records)} recordings to process:")
            for record in summary.next_records:
                lines.append(f"   {record.position}. {record.topic or 'No Topic'} ({record.identity or 'NO UUID'})")

    if summary.last_records:
        lines.append("")
        lines.append(f"📋 Last {len(summary.last_records)} recordings in file:")
        for record in summary.last_records:
            lines.append(f"   Recording #{record.position}:")
            lines.extend(_describe(record, indent="      "))

    lines.append("")
    lines.append("🔍 UUID Check:")
    if plan.missing_identity_count:
        for warning in plan.missing_identity[:max_missing_listed]:
            lines.append(f"   ⚠️ {warning}")
        lines.append(f"⚠️ Total pending recordings missing UUID: {plan.missing_identity_count}")
    else:
        lines.append("✅ All pending recordings have a UUID")

    if plan.duplicate_identities:
        lines.append(f"⚠️ UUIDs appearing on more than one row: {', '.join(plan.duplicate_identities)}")

    lines.append(SEPARATOR)
    return "\n".join(lines)


def log_warnings(plan: ResumePlan) -> None:
    for warning in plan.missing_identity:
        logger.warning(str(warning))
    for identity in plan.duplicate_identities:
        logger.warning(f"UUID {identity} appears on more than one row")
