"""
Runs every PUSH_RECEIPT_INTERVAL_MINUTES (default 15): poll Expo receipts for pending tickets,
mark them ok/error and prune device tokens Expo reports as unregistered.

Independent of the beacon triggers; the two only share expo_push_tickets.
"""
import logging

from beacon_push.core.push_config import get_push_config
from beacon_push.db.session import SessionLocal
from beacon_push.services.expo import default_client
from beacon_push.services.receipts import ReceiptReconciler, ReconcileResult

logger = logging.getLogger(__name__)


def run_receipt_check_job() -> ReconcileResult | None:
    try:
        return ReceiptReconciler(SessionLocal, default_client, get_push_config()).run()
    except Exception as e:
        logger.exception("Receipt job failed: %s", e)
        return None
