import os
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()

# Logging configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', 'logs')

# Resume configuration
RESUME_CSV_FILE = os.getenv('RESUME_CSV_FILE', 'recordings.csv')
CHECKPOINT_FILE = os.getenv('CHECKPOINT_FILE', '.resume-checkpoint.json')
CHECKPOINT_POLICY = os.getenv('CHECKPOINT_POLICY', 'identity')
PROCESSING_DELAY = float(os.getenv('PROCESSING_DELAY', 2))

# Google Sheets configuration
MASTER_INDEX_SHEET_ID = os.getenv('MASTER_INDEX_SHEET_ID')
SHEET_TABS = [
    "Zoom API - Raw",
    "Zoom API - Standardized"
]

# Zoom API configuration
ZOOM_BASE_URL = os.getenv('ZOOM_BASE_URL', 'https://api.zoom.us/v2')
ZOOM_OAUTH_URL = os.getenv('ZOOM_OAUTH_URL', 'https://zoom.us/oauth/token')

# Recording files uploaded for each session
RECORDING_FILE_TYPES = {
    "TRANSCRIPT": ("transcript.vtt", "text/vtt"),
    "CHAT": ("chat_log.txt", "text/plain")
}
METADATA_FILE_NAME = "session_metadata.json"

# Every environment key Settings.from_env understands
RECOGNIZED_KEYS = [
    "LOG_LEVEL",
    "LOG_DIR",
    "RESUME_CSV_FILE",
    "CHECKPOINT_FILE",
    "CHECKPOINT_POLICY",
    "PROCESSING_DELAY",
    "MASTER_INDEX_SHEET_ID",
    "ZOOM_ACCOUNT_ID",
    "ZOOM_CLIENT_ID",
    "ZOOM_CLIENT_SECRET",
    "ZOOM_BASE_URL",
    "GOOGLE_DRIVE_ROOT_FOLDER",
    "GOOGLE_SHARED_DRIVE_ID",
    "GOOGLE_CLIENT_EMAIL",
    "GOOGLE_PRIVATE_KEY",
    "GOOGLE_SERVICE_ACCOUNT_JSON",
    "GOOGLE_SERVICE_ACCOUNT_KEY",
]


class Settings(BaseModel):
    """Explicit configuration handed to components at construction."""
    log_level: str = LOG_LEVEL
    log_dir: str = LOG_DIR
    csv_file: str = RESUME_CSV_FILE
    checkpoint_file: str = CHECKPOINT_FILE
    checkpoint_policy: str = CHECKPOINT_POLICY
    processing_delay: float = PROCESSING_DELAY
    master_index_sheet_id: Optional[str] = None
    zoom_account_id: Optional[str] = None
    zoom_client_id: Optional[str] = None
    zoom_client_secret: Optional[str] = None
    zoom_base_url: str = ZOOM_BASE_URL
    drive_root_folder: Optional[str] = None
    shared_drive_id: Optional[str] = None
    google_env: Dict[str, str] = {}

    @property
    def use_shared_drive(self) -> bool:
        return bool(self.shared_drive_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from an environment mapping.

        Only keys in RECOGNIZED_KEYS are read. The raw Google credential keys are
        kept in ``google_env`` so credentials can be resolved later with their
        documented fallback order.
        """
        if environ is None:
            environ = os.environ
        env = {key: environ[key] for key in RECOGNIZED_KEYS if environ.get(key)}

        policy = env.get("CHECKPOINT_POLICY", CHECKPOINT_POLICY)
        if policy not in ("identity", "count"):
            raise ValueError(f"CHECKPOINT_POLICY must be 'identity' or 'count', got {policy!r}")

        return cls(
            log_level=env.get("LOG_LEVEL", LOG_LEVEL),
            log_dir=env.get("LOG_DIR", LOG_DIR),
            csv_file=env.get("RESUME_CSV_FILE", RESUME_CSV_FILE),
            checkpoint_file=env.get("CHECKPOINT_FILE", CHECKPOINT_FILE),
            checkpoint_policy=policy,
            processing_delay=float(env.get("PROCESSING_DELAY", PROCESSING_DELAY)),
            master_index_sheet_id=env.get("MASTER_INDEX_SHEET_ID"),
            zoom_account_id=env.get("ZOOM_ACCOUNT_ID"),
            zoom_client_id=env.get("ZOOM_CLIENT_ID"),
            zoom_client_secret=env.get("ZOOM_CLIENT_SECRET"),
            zoom_base_url=env.get("ZOOM_BASE_URL", ZOOM_BASE_URL),
            drive_root_folder=env.get("GOOGLE_DRIVE_ROOT_FOLDER"),
            shared_drive_id=env.get("GOOGLE_SHARED_DRIVE_ID"),
            google_env={key: value for key, value in env.items() if key.startswith("GOOGLE_")},
        )

    def missing_zoom_keys(self) -> List[str]:
        missing = []
        if not self.zoom_account_id:
            missing.append("ZOOM_ACCOUNT_ID")
        if not self.zoom_client_id:
            missing.append("ZOOM_CLIENT_ID")
        if not self.zoom_client_secret:
            missing.append("ZOOM_CLIENT_SECRET")
        return missing
