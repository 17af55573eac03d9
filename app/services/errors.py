from typing import List, Optional


class ResumeError(Exception):
    """Base class for errors raised while planning or running a resume."""


class InputNotFoundError(ResumeError):
    """The recordings CSV does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"CSV file not found: {path}")


class InputParseError(ResumeError):
    """The recordings CSV could not be parsed as a headed table."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse {path}: {reason}")


class CheckpointCorruptError(ResumeError):
    """The checkpoint file exists but its contents cannot be trusted."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Checkpoint {path} is corrupt ({reason}); fix or remove it before resuming"
        )


class CredentialsError(ResumeError):
    """No usable Google service account credentials were found."""

    def __init__(self, recognized_keys: List[str]):
        self.recognized_keys = recognized_keys
        super().__init__(
            "No working Google credentials found. Set one of: "
            "GOOGLE_CLIENT_EMAIL + GOOGLE_PRIVATE_KEY, "
            "GOOGLE_SERVICE_ACCOUNT_JSON, "
            "GOOGLE_SERVICE_ACCOUNT_KEY (base64 encoded)"
        )


class RecordProcessingError(ResumeError):
    """A batch driver failed to import a single recording."""

    def __init__(self, identity: Optional[str], reason: str):
        self.identity = identity
        self.reason = reason
        super().__init__(f"Recording {identity or '<no uuid>'} failed: {reason}")


class MissingIdentityWarning(UserWarning):
    """A record has neither ``uuid`` nor ``uuid_base64``; it cannot be deduplicated."""

    def __init__(self, position: int, topic: str = ""):
        self.position = position
        self.topic = topic
        super().__init__(f"Missing UUID: Recording #{position} - {topic or 'No Topic'}")

    def __eq__(self, other):
        if not isinstance(other, MissingIdentityWarning):
            return NotImplemented
        return (self.position, self.topic) == (other.position, other.topic)

    def __hash__(self):
        return hash((self.position, self.topic))
