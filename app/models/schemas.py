from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Dict, Optional, Any, Iterable, Literal
from datetime import datetime, timezone

from app.services.errors import MissingIdentityWarning

CheckpointPolicy = Literal["identity", "count"]


class Record(BaseModel):
    """One data row of the recordings CSV."""
    position: int
    row: Dict[str, str]
    identity: Optional[str] = None

    @property
    def topic(self) -> str:
        return self.row.get("topic", "")

    @property
    def meeting_id(self) -> str:
        return self.row.get("meeting_id", "")

    @property
    def host_email(self) -> str:
        return self.row.get("host_email", "")

    @property
    def start_time(self) -> str:
        return self.row.get("start_time", "")


class RecordFailure(BaseModel):
    """Model for a recording the batch driver could not import."""
    position: int
    identity: Optional[str] = None
    meeting_id: str = ""
    topic: str = ""
    error: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Checkpoint(BaseModel):
    """
    Persisted import progress.

    Under the ``count`` policy only ``completed_count`` matters: the number of
    leading CSV rows already imported. Under the ``identity`` policy the set of
    imported UUIDs is authoritative and survives the CSV being regenerated in a
    different order.
    """
    policy: CheckpointPolicy = "identity"
    completed_count: int = 0
    completed_identities: List[str] = Field(default_factory=list)
    failures: List[RecordFailure] = Field(default_factory=list)
    last_update: Optional[datetime] = None

    @field_validator("completed_count")
    @classmethod
    def _count_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("completed_count cannot be negative")
        return value

    @field_validator("completed_identities")
    @classmethod
    def _identities_unique(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    def is_completed(self, record: Record) -> bool:
        if self.policy == "count":
            return record.position <= self.completed_count
        return record.identity is not None and record.identity in self.completed_identities

    def record_success(self, record: Record) -> bool:
        """
        Advance the checkpoint past ``record``.

        Returns True if the checkpoint moved. A count checkpoint only moves when
        the record is the next leading row, so it never skips over a row that
        failed earlier in the run.
        """
        moved = False
        if self.policy == "count":
            if record.position == self.completed_count + 1:
                self.completed_count += 1
                moved = True
        elif record.identity and record.identity not in self.completed_identities:
            self.completed_identities.append(record.identity)
            moved = True

        self.failures = [f for f in self.failures if f.position != record.position]
        self.last_update = datetime.now(timezone.utc)
        return moved

    def record_failure(self, record: Record, error: str) -> RecordFailure:
        failure = RecordFailure(
            position=record.position,
            identity=record.identity,
            meeting_id=record.meeting_id,
            topic=record.topic,
            error=error
        )
        self.failures = [f for f in self.failures if f.position != record.position]
        self.failures.append(failure)
        self.last_update = datetime.now(timezone.utc)
        return failure

    def seed_identities(self, identities: Iterable[str]) -> int:
        """Mark identities imported elsewhere as completed. Returns how many were new."""
        added = 0
        for identity in identities:
            if identity and identity not in self.completed_identities:
                self.completed_identities.append(identity)
                added += 1
        if added:
            self.last_update = datetime.now(timezone.utc)
        return added

    def covers(self, other: "Checkpoint") -> bool:
        """True if this checkpoint has at least the progress recorded in ``other``."""
        return (
            self.completed_count >= other.completed_count
            and set(other.completed_identities).issubset(self.completed_identities)
        )


class ResumePlan(BaseModel):
    """What is left to import in this run. Computed fresh, never persisted."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    policy: CheckpointPolicy
    total_records: int
    skip_count: int
    pending_records: List[Record]
    missing_identity_count: int
    missing_identity: List[MissingIdentityWarning] = Field(default_factory=list)
    duplicate_identities: List[str] = Field(default_factory=list)

    @property
    def first_pending(self) -> Optional[Record]:
        return self.pending_records[0] if self.pending_records else None


class DryRunSummary(BaseModel):
    """The preview an operator sees before any recording is imported."""
    plan: ResumePlan
    next_records: List[Record]
    last_records: List[Record]

    @property
    def first_pending(self) -> Optional[Record]:
        return self.plan.first_pending


class BatchResult(BaseModel):
    """Model for the outcome of a batch run."""
    attempted: int = 0
    succeeded: int = 0
    skipped_already_done: int = 0
    # Successes a count checkpoint could not record because an earlier row failed
    unrecorded_successes: int = 0
    failed: List[RecordFailure] = Field(default_factory=list)
    stopped_early: bool = False


class GoogleCredentials(BaseModel):
    """Service account fields resolved from the environment."""
    client_email: str
    private_key: str
    source: Literal["individual", "json", "base64"]
    project_id: Optional[str] = None
    token_uri: str = "https://oauth2.googleapis.com/token"

    def service_account_info(self) -> Dict[str, Any]:
        info = {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": self.token_uri
        }
        if self.project_id:
            info["project_id"] = self.project_id
        return info


class CredentialCheck(BaseModel):
    """Result of inspecting one credential source."""
    source: Literal["individual", "json", "base64"]
    keys: List[str]
    present: bool = False
    valid: bool = False
    client_email_found: bool = False
    private_key_found: bool = False
    error: Optional[str] = None


class SheetCount(BaseModel):
    """Number of data rows in one sheet tab."""
    tab: str
    rows: int
