#!/usr/bin/env python3
"""
Copy legacy single-token fields (users.expo_push_token, users.push_token, profiles.expo_push_token)
into canonical push_tokens rows. Safe to re-run.
Run from backend: python scripts/migrate_push_tokens.py
"""
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from beacon_push.db.session import SessionLocal
from beacon_push.services.token_migration import migrate_legacy_tokens


def main():
    db = SessionLocal()
    try:
        result = migrate_legacy_tokens(db)
        print(
            f"Migration complete: users={result['users']} created={result['created']} updated={result['updated']}"
        )
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
