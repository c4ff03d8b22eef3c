from beacon_push.services.beacon_triggers import on_beacon_created, on_beacon_updated
from beacon_push.services.fanout import FanOutResult, FanOutSender
from beacon_push.services.receipts import ReceiptReconciler, ReconcileResult

__all__ = [
    "FanOutResult",
    "FanOutSender",
    "ReceiptReconciler",
    "ReconcileResult",
    "on_beacon_created",
    "on_beacon_updated",
]
