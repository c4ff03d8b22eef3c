"""
Receipt reconciler: resolve pending tickets against Expo receipts and prune dead tokens.

One tick:
  1. pending tickets created within the TTL (older ones age out and stay pending),
  2. ids chunked by receipt_chunk_size,
  3. per chunk: fetch receipts, ok -> 'ok', otherwise -> 'error' (+ message/details),
     commit; then prune tokens for DeviceNotRegistered (best effort).
A failed chunk is rolled back and logged; its tickets stay pending for the next tick.
Updates filter on status='pending', so overlapping or repeated ticks never double-apply.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from beacon_push.core.constants import TICKET_STATUS_OK
from beacon_push.core.errors import permanent_token_error_reason, receipt_error_code
from beacon_push.core.push_config import PushPipelineConfig, get_push_config
from beacon_push.services.expo import chunk_items
from beacon_push.services.fanout import PushGateway
from beacon_push.services.tickets import list_pending_tickets, mark_ticket_error, mark_ticket_ok
from beacon_push.services.tokens import remove_token

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Counts for one reconciliation tick."""
    pending: int = 0
    chunks: int = 0
    failed_chunks: int = 0
    ok: int = 0
    errors: int = 0
    awaiting_receipt: int = 0
    pruned_tokens: int = 0
    prune_failures: int = 0


@dataclass(frozen=True)
class _TicketMeta:
    subscriber_uid: str
    token: str


class ReceiptReconciler:
    """Polls Expo receipts for pending tickets; driven by the scheduler."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        gateway: PushGateway,
        config: PushPipelineConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._gateway = gateway
        self._config = config or get_push_config()

    def run(self, now: datetime | None = None) -> ReconcileResult:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=self._config.ticket_ttl_hours)
        result = ReconcileResult()
        db = self._session_factory()
        try:
            pending = list_pending_tickets(db, created_after=cutoff, limit=self._config.receipt_query_limit)
            result.pending = len(pending)
            if not pending:
                return result
            meta_by_id = {
                t.id: _TicketMeta(subscriber_uid=str(t.subscriber_uid), token=str(t.token)) for t in pending
            }
            ids = list(meta_by_id)
            # End the read transaction; each chunk commits on its own
            db.commit()
            for id_chunk in chunk_items(ids, self._config.receipt_chunk_size):
                result.chunks += 1
                self._reconcile_chunk(db, id_chunk, meta_by_id, now, result)
        finally:
            db.close()
        logger.info(
            "Receipt check: pending=%s chunks=%s failed_chunks=%s ok=%s error=%s awaiting=%s pruned=%s",
            result.pending,
            result.chunks,
            result.failed_chunks,
            result.ok,
            result.errors,
            result.awaiting_receipt,
            result.pruned_tokens,
        )
        return result

    def _reconcile_chunk(
        self,
        db: Session,
        id_chunk: list[str],
        meta_by_id: dict[str, _TicketMeta],
        now: datetime,
        result: ReconcileResult,
    ) -> None:
        try:
            receipts = self._gateway.get_push_receipts(id_chunk)
        except Exception as e:
            result.failed_chunks += 1
            logger.error("Receipt check error for %s ticket(s): %s", len(id_chunk), e, exc_info=True)
            return

        ok = errors = awaiting = 0
        to_prune: list[_TicketMeta] = []
        try:
            for ticket_id in id_chunk:
                receipt: Any = receipts.get(ticket_id)
                if receipt is None:
                    awaiting += 1
                    continue
                if not isinstance(receipt, dict):
                    logger.warning("Ignoring malformed receipt for ticket %s: %r", ticket_id, receipt)
                    awaiting += 1
                    continue
                if receipt.get("status") == TICKET_STATUS_OK:
                    if mark_ticket_ok(db, ticket_id, now=now):
                        ok += 1
                    continue
                details = receipt.get("details")
                if not mark_ticket_error(db, ticket_id, message=receipt.get("message"), details=details, now=now):
                    continue
                errors += 1
                code = receipt_error_code(details)
                reason = permanent_token_error_reason(code)
                if reason:
                    logger.info("Ticket %s: %s (%s); pruning token", ticket_id, reason, code)
                    to_prune.append(meta_by_id[ticket_id])
                else:
                    logger.warning("Ticket %s delivery error %s: %s", ticket_id, code, receipt.get("message"))
            db.commit()
        except Exception as e:
            db.rollback()
            result.failed_chunks += 1
            logger.error("Receipt batch commit failed for %s ticket(s): %s", len(id_chunk), e, exc_info=True)
            return
        result.ok += ok
        result.errors += errors
        result.awaiting_receipt += awaiting

        for meta in to_prune:
            try:
                result.pruned_tokens += remove_token(db, meta.subscriber_uid, meta.token)
                db.commit()
            except Exception as e:
                db.rollback()
                result.prune_failures += 1
                logger.warning("Pruning token for %s failed: %s", meta.subscriber_uid, e, exc_info=True)
