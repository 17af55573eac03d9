"""
Resolve Google service account credentials from environment variables.

Sources are tried in this order and the first one that yields both a client
email and a private key wins:

1. ``GOOGLE_CLIENT_EMAIL`` + ``GOOGLE_PRIVATE_KEY``
2. ``GOOGLE_SERVICE_ACCOUNT_JSON`` (the service account JSON as-is)
3. ``GOOGLE_SERVICE_ACCOUNT_KEY`` (the same JSON, base64 encoded)
"""

import re
import json
import base64
import binascii
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from google.oauth2 import service_account

from app.models.schemas import CredentialCheck, GoogleCredentials
from app.services.errors import CredentialsError

logger = logging.getLogger(__name__)

CREDENTIAL_SOURCES = [
    ("individual", ["GOOGLE_CLIENT_EMAIL", "GOOGLE_PRIVATE_KEY"]),
    ("json", ["GOOGLE_SERVICE_ACCOUNT_JSON"]),
    ("base64", ["GOOGLE_SERVICE_ACCOUNT_KEY"]),
]


def _normalize_private_key(private_key: str) -> str:
    # Keys pasted into .env files usually carry literal "\n" sequences
    return private_key.replace("\\n", "\n")


def _parse_service_account(raw: str) -> Dict[str, str]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("service account JSON is not an object")
    return data


def _read_source(source: str, environ: Mapping[str, str]) -> Tuple[CredentialCheck, Optional[GoogleCredentials]]:
    keys = dict(CREDENTIAL_SOURCES)[source]
    check = CredentialCheck(source=source, keys=keys)

    if source == "individual":
        email = environ.get("GOOGLE_CLIENT_EMAIL")
        key = environ.get("GOOGLE_PRIVATE_KEY")
        check.present = bool(email or key)
        check.client_email_found = bool(email)
        check.private_key_found = bool(key)
        data = {"client_email": email, "private_key": key}
    else:
        raw = environ.get(keys[0])
        check.present = bool(raw)
        if not raw:
            return check, None
        try:
            if source == "base64":
                cleaned = re.sub(r"\s+", "", raw)
                raw = base64.b64decode(cleaned, validate=True).decode("utf-8")
            data = _parse_service_account(raw)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            check.error = f"Failed to decode: {e}"
            return check, None
        check.client_email_found = bool(data.get("client_email"))
        check.private_key_found = bool(data.get("private_key"))

    if not (check.client_email_found and check.private_key_found):
        return check, None

    check.valid = True
    credentials = GoogleCredentials(
        client_email=data["client_email"],
        private_key=_normalize_private_key(data["private_key"]),
        source=source,
        project_id=data.get("project_id"),
        token_uri=data.get("token_uri") or "https://oauth2.googleapis.com/token"
    )
    return check, credentials


def check_google_credentials(environ: Mapping[str, str]) -> List[CredentialCheck]:
    """Inspect every credential source independently, without exposing secrets."""
    return [_read_source(source, environ)[0] for source, _ in CREDENTIAL_SOURCES]


def load_google_credentials(environ: Mapping[str, str]) -> GoogleCredentials:
    """
    Return the first usable credentials in the documented fallback order.

    Raises:
        CredentialsError: If no source provides both a client email and a private key
    """
    for source, _ in CREDENTIAL_SOURCES:
        check, credentials = _read_source(source, environ)
        if credentials is not None:
            logger.info(f"Using Google credentials from {', '.join(check.keys)}")
            return credentials
        if check.present:
            logger.warning(f"Google credentials in {', '.join(check.keys)} are unusable: "
                           f"{check.error or 'client email or private key missing'}")

    raise CredentialsError([key for _, keys in CREDENTIAL_SOURCES for key in keys])


def build_service_account_credentials(credentials: GoogleCredentials, scopes: Sequence[str]):
    """Create google-auth credentials for the given scopes."""
    return service_account.Credentials.from_service_account_info(
        credentials.service_account_info(),
        scopes=list(scopes)
    )
