#!/usr/bin/env python
"""
Check which Google service account credentials are configured.

Reports each recognized source separately (individual fields, JSON, base64 JSON)
and which one would be used. Secrets are never printed.
"""

import os
import sys

# Add the parent directory to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from app.services.credentials import check_google_credentials, load_google_credentials
from app.services.errors import CredentialsError


def mark(flag: bool) -> str:
    return "✓" if flag else "✗"


def main() -> int:
    print("=== Google Credentials Check ===\n")

    google_env = Settings.from_env().google_env
    checks = check_google_credentials(google_env)
    for number, check in enumerate(checks, start=1):
        print(f"{number}. {' + '.join(check.keys)}:")
        if not check.present:
            print("   ✗ Not set\n")
            continue
        if check.error:
            print(f"   ❌ {check.error}")
        print(f"   Client Email: {mark(check.client_email_found)} {'Found' if check.client_email_found else 'Missing'}")
        print(f"   Private Key: {mark(check.private_key_found)} {'Found' if check.private_key_found else 'Missing'}")
        print(f"   {'✅ Usable' if check.valid else '❌ Not usable'}\n")

    print("=== Summary ===")
    try:
        credentials = load_google_credentials(google_env)
    except CredentialsError as e:
        print(f"❌ {e}")
        return 1

    print(f"✅ Google credentials available from the '{credentials.source}' source")
    print(f"   Client Email: {credentials.client_email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
