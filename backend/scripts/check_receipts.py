#!/usr/bin/env python3
"""
Run one Expo receipt check now (same work as the 15-minute scheduler job) and print the counts.
Run from backend: python scripts/check_receipts.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from beacon_push.core.push_config import get_push_config
from beacon_push.db.session import SessionLocal
from beacon_push.services.expo import default_client
from beacon_push.services.receipts import ReceiptReconciler


def main():
    config = get_push_config()
    print(f"Checking receipts for pending tickets younger than {config.ticket_ttl_hours}h...")
    result = ReceiptReconciler(SessionLocal, default_client, config).run()
    print(
        f"Done. pending={result.pending} ok={result.ok} error={result.errors} "
        f"awaiting={result.awaiting_receipt} pruned_tokens={result.pruned_tokens} "
        f"failed_chunks={result.failed_chunks}"
    )


if __name__ == "__main__":
    main()
