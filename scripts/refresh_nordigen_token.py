#!/usr/bin/env python
"""Check (and if needed renew) the stored Nordigen access token.

Runs the same stored -> refresh -> re-authenticate chain the API uses
and prints which step produced the token. Useful after a long idle
period or to verify that saved credentials still work.

Usage:
    python -m scripts.refresh_nordigen_token
"""

import sys

from database import get_session_local, init_db
from integrations.exceptions import TransportError
from integrations.nordigen_client import NordigenClient
from services.credential_store import CredentialStore
from services.record_store import SQLRecordStore
from services.token_manager import TokenManager, TokenState


def main() -> int:
    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()
    client = NordigenClient()

    try:
        manager = TokenManager(CredentialStore(SQLRecordStore(db)), client)
        try:
            result = manager.resolve_token()
        except TransportError as e:
            print(f"Nordigen unreachable: {e}")
            return 2

        if result.state is TokenState.NOT_CONFIGURED:
            print("Nordigen is not configured. Save credentials first.")
            return 1
        if not result.ok:
            print("Stored credentials were rejected. Save new credentials.")
            return 1

        print(f"Token OK ({result.state.value})")
        return 0
    finally:
        client.close()
        db.close()


if __name__ == "__main__":
    sys.exit(main())
