import logging
from typing import Dict, Any, Optional

from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload

from config import Settings
from app.models.schemas import GoogleCredentials
from app.services.credentials import build_service_account_credentials

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive']
FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'


def get_drive_service(credentials: GoogleCredentials):
    """
    Get an authenticated Google Drive service instance.
    """
    try:
        google_credentials = build_service_account_credentials(credentials, DRIVE_SCOPES)
        return build('drive', 'v3', credentials=google_credentials, cache_discovery=False)
    except Exception as e:
        logger.error(f"Error creating Google Drive service: {e}")
        raise


class DriveManager:
    """Creates session folders and uploads recording files."""

    def __init__(self, settings: Settings, service=None, credentials: Optional[GoogleCredentials] = None):
        if not settings.drive_root_folder:
            raise ValueError("GOOGLE_DRIVE_ROOT_FOLDER is not configured")
        if service is None:
            service = get_drive_service(credentials)

        self.service = service
        self.root_folder_id = settings.drive_root_folder
        self.shared_drive_id = settings.shared_drive_id
        self.use_shared_drive = settings.use_shared_drive

        if self.use_shared_drive:
            logger.info(f"Drive Manager initialized with shared drive ID: {self.shared_drive_id}")
        else:
            logger.info(f"Drive Manager initialized with root folder ID: {self.root_folder_id}")

    def _list_kwargs(self) -> Dict[str, Any]:
        if self.use_shared_drive:
            return {
                "corpora": "drive",
                "driveId": self.shared_drive_id,
                "includeItemsFromAllDrives": True,
                "supportsAllDrives": True
            }
        return {}

    def _create_kwargs(self) -> Dict[str, Any]:
        return {"supportsAllDrives": True} if self.use_shared_drive else {}

    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        """
        Return the ID of the folder ``name`` under ``parent_id``, creating it if needed.
        """
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        query = f"name = '{escaped}' and mimeType = '{FOLDER_MIME_TYPE}' and '{parent_id}' in parents and trashed = false"
        results = self.service.files().list(q=query, fields="files(id, name)", **self._list_kwargs()).execute()

        if results.get('files'):
            logger.info(f"Found existing folder: {name}")
            return results['files'][0]['id']

        file_metadata = {
            'name': name,
            'mimeType': FOLDER_MIME_TYPE,
            'parents': [parent_id]
        }
        folder = self.service.files().create(body=file_metadata, fields='id', **self._create_kwargs()).execute()
        logger.info(f"Created new folder: {name}")
        return folder.get('id')

    def create_folder_structure(self, topic_folder: str, session_folder: str) -> Dict[str, str]:
        """
        Create ``<root>/<topic_folder>/<session_folder>`` in Google Drive.

        Returns:
            Dictionary with folder IDs
        """
        topic_folder_id = self.find_or_create_folder(topic_folder, self.root_folder_id)
        session_folder_id = self.find_or_create_folder(session_folder, topic_folder_id)
        return {
            'topic_folder_id': topic_folder_id,
            'session_folder_id': session_folder_id
        }

    def upload_file(
        self,
        file_path: str,
        folder_id: str,
        file_name: str,
        mime_type: str = 'application/octet-stream'
    ) -> Dict[str, Any]:
        """
        Upload a file to Google Drive.

        Args:
            file_path: Path to the file
            folder_id: ID of the folder to upload to
            file_name: Name to give the file in Google Drive
            mime_type: MIME type of the file

        Returns:
            Dictionary with file metadata including id and webViewLink
        """
        file_metadata = {
            'name': file_name,
            'parents': [folder_id]
        }
        media = MediaFileUpload(file_path, mimetype=mime_type, resumable=True)

        try:
            file = self.service.files().create(
                body=file_metadata,
                media_body=media,
                fields='id,webViewLink',
                **self._create_kwargs()
            ).execute()
        except Exception as e:
            logger.error(f"Error uploading file: {e}")
            raise

        logger.debug(f"File uploaded successfully with ID: {file.get('id')}")
        return file
