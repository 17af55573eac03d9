import os
import re
import json
import shutil
import logging
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import config
from app.models.schemas import Record
from app.services.batch_runner import BatchDriver
from app.services.drive_manager import DriveManager
from app.services.errors import RecordProcessingError
from app.services.zoom_client import ZoomClient

logger = logging.getLogger(__name__)


def session_date(start_time: str) -> str:
    """Date part of a Zoom start time, or today's date if it cannot be parsed."""
    try:
        return datetime.fromisoformat(start_time.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except (ValueError, AttributeError):
        logger.warning(f"Could not parse start time: {start_time}")
        return datetime.now().strftime("%Y-%m-%d")


def folder_name(topic: str) -> str:
    cleaned = re.sub(r'[\\/:*?"<>|]+', "_", topic or "").strip()
    return re.sub(r"\s+", " ", cleaned) or "Unknown Meeting"


class ZoomRecordingDriver(BatchDriver):
    """
    Imports one Zoom recording into Google Drive.

    The recording is looked up by UUID, its transcript and chat files are
    downloaded, and they are uploaded to ``<topic>/<topic>_<date>`` together with
    a session metadata file.
    """

    def __init__(self, zoom_client: ZoomClient, drive_manager: DriveManager):
        self.zoom_client = zoom_client
        self.drive_manager = drive_manager

    async def process(self, record: Record) -> None:
        if not record.identity:
            raise RecordProcessingError(None, "No UUID found in CSV")
        await self.process_uuid(record.identity, fallback=record.row)

    async def process_uuid(self, meeting_uuid: str, fallback: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Import the recording with the given UUID.

        Args:
            meeting_uuid: UUID of the meeting instance
            fallback: CSV fields used when the API omits topic or start time

        Returns:
            The metadata written next to the uploaded files
        """
        fallback = fallback or {}
        try:
            recording = self.zoom_client.get_recording(meeting_uuid)
        except Exception as e:
            raise RecordProcessingError(meeting_uuid, f"could not fetch recording: {e}")

        topic = recording.get("topic") or fallback.get("topic") or "Unknown Meeting"
        start_time = recording.get("start_time") or fallback.get("start_time", "")
        topic_folder = folder_name(topic)
        try:
            folder_ids = self.drive_manager.create_folder_structure(
                topic_folder, f"{topic_folder}_{session_date(start_time)}"
            )
        except Exception as e:
            raise RecordProcessingError(meeting_uuid, f"could not create Google Drive folders: {e}")
        session_folder_id = folder_ids["session_folder_id"]

        temp_dir = tempfile.mkdtemp(prefix="recording-")
        try:
            uploaded = self._transfer_files(recording, session_folder_id, temp_dir)
            metadata = {
                "uuid": meeting_uuid,
                "meeting_id": str(recording.get("id") or fallback.get("meeting_id", "")),
                "topic": topic,
                "host_email": recording.get("host_email") or fallback.get("host_email", ""),
                "start_time": start_time,
                "duration": recording.get("duration"),
                "files": uploaded,
                "processed_at": datetime.now(timezone.utc).isoformat()
            }
            metadata_path = os.path.join(temp_dir, config.METADATA_FILE_NAME)
            with open(metadata_path, "w") as f:
                json.dump(metadata, f, indent=2)
            self.drive_manager.upload_file(
                metadata_path, session_folder_id, config.METADATA_FILE_NAME, "application/json"
            )
        except Exception as e:
            raise RecordProcessingError(meeting_uuid, f"could not transfer files: {e}")
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        logger.info(f"Recording {meeting_uuid} imported into folder {session_folder_id}")
        return metadata

    def _transfer_files(self, recording: Dict[str, Any], folder_id: str, temp_dir: str) -> List[Dict[str, str]]:
        uploaded = []
        for file in recording.get("recording_files", []):
            file_type = file.get("file_type", "")
            download_url = file.get("download_url")
            if file_type not in config.RECORDING_FILE_TYPES or not download_url:
                continue

            file_name, mime_type = config.RECORDING_FILE_TYPES[file_type]
            local_path = os.path.join(temp_dir, file_name)
            logger.info(f"Downloading {file_type.lower()} for {recording.get('topic', 'recording')}")
            self.zoom_client.download_file(download_url, local_path)
            result = self.drive_manager.upload_file(local_path, folder_id, file_name, mime_type)
            uploaded.append({
                "file_type": file_type,
                "id": result.get("id"),
                "webViewLink": result.get("webViewLink", "")
            })

        if not uploaded:
            logger.warning(f"No transcript or chat found for {recording.get('topic', 'recording')}")
        return uploaded
