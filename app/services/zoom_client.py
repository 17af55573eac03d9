import requests
import logging
import time
from typing import Dict, Any, Optional
from urllib.parse import quote

import config
from config import Settings

logger = logging.getLogger(__name__)


def encode_meeting_uuid(meeting_uuid: str) -> str:
    """
    Encode a meeting UUID for use in a Zoom API path.

    Zoom requires UUIDs that begin with ``/`` or contain ``//`` to be URL-encoded
    twice; all others are encoded once.
    """
    encoded = quote(meeting_uuid, safe="")
    if meeting_uuid.startswith("/") or "//" in meeting_uuid:
        encoded = quote(encoded, safe="")
    return encoded


class ZoomClient:
    """Client for the Zoom recordings API using account credentials."""

    def __init__(self, settings: Settings, oauth_url: str = config.ZOOM_OAUTH_URL):
        missing = settings.missing_zoom_keys()
        if missing:
            raise ValueError(f"Missing Zoom configuration: {', '.join(missing)}")

        self.account_id = settings.zoom_account_id
        self.client_id = settings.zoom_client_id
        self.client_secret = settings.zoom_client_secret
        self.base_url = settings.zoom_base_url
        self.oauth_url = oauth_url
        self.access_token: Optional[str] = None
        self.token_expiry = 0.0

    def get_access_token(self) -> str:
        """Get an access token, reusing the cached one until it expires."""
        if self.access_token and time.time() < self.token_expiry:
            return self.access_token

        headers = {
            "Content-Type": "application/x-www-form-urlencoded"
        }
        data = {
            "grant_type": "account_credentials",
            "account_id": self.account_id,
            "client_id": self.client_id,
            "client_secret": self.client_secret
        }

        logger.debug(f"Requesting access token from {self.oauth_url}")
        response = requests.post(self.oauth_url, headers=headers, data=data, timeout=30)
        response.raise_for_status()

        result = response.json()
        self.access_token = result["access_token"]
        self.token_expiry = time.time() + result.get("expires_in", 3600) - 60  # Subtract 60 seconds for safety
        logger.debug("Access token received")
        return self.access_token

    def get_recording(self, meeting_uuid: str) -> Dict[str, Any]:
        """
        Get recording information for a single meeting instance.

        Args:
            meeting_uuid: UUID of the meeting instance

        Returns:
            Recording payload from the Zoom API
        """
        headers = {
            "Authorization": f"Bearer {self.get_access_token()}",
            "Content-Type": "application/json"
        }
        url = f"{self.base_url}/meetings/{encode_meeting_uuid(meeting_uuid)}/recordings"

        logger.debug(f"Fetching recording from {url}")
        response = requests.get(url, headers=headers, timeout=60)
        response.raise_for_status()
        return response.json()

    def download_file(self, download_url: str, output_path: str) -> None:
        """
        Stream a recording file to disk.

        Args:
            download_url: URL from the recording's ``recording_files``
            output_path: Path to save the file
        """
        headers = {
            "Authorization": f"Bearer {self.get_access_token()}"
        }

        logger.debug(f"Downloading file from URL: {download_url}")
        with requests.get(download_url, headers=headers, stream=True, timeout=300) as response:
            response.raise_for_status()
            with open(output_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=1024 * 1024):
                    f.write(chunk)
        logger.debug(f"File downloaded to: {output_path}")
