"""
Fan-out sender: one beacon activation -> Expo messages to every device of every eligible recipient.

Flow: eligible recipients -> tokens per recipient -> one message per token -> chunks of
send_chunk_size -> send -> zip(messages, tickets) by position -> persist success tickets.
Best effort: a failed batch is logged and the rest continue. Each batch's tickets are committed
before the next batch is sent, so a crash loses at most the batch in flight.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

from sqlalchemy.orm import Session

from beacon_push.core.constants import PUSH_PRIORITY, PUSH_SOUND, TICKET_STATUS_OK
from beacon_push.core.push_config import PushPipelineConfig, get_push_config
from beacon_push.services.beacon_message import Beacon, beacon_body, beacon_push_data, beacon_title
from beacon_push.services.eligibility import DEFAULT_PREFERENCE_SOURCES, PreferenceSource, eligible_recipients
from beacon_push.services.expo import chunk_items
from beacon_push.services.expo.types import ExpoPushMessage, ExpoPushReceipt, ExpoPushTicket
from beacon_push.services.recipient_lookup import lookup_per_recipient
from beacon_push.services.tickets import save_ticket
from beacon_push.services.tokens import DEFAULT_TOKEN_SOURCES, TokenSource, get_all_expo_tokens

logger = logging.getLogger(__name__)


class PushGateway(Protocol):
    """What the pipeline needs from the push service (ExpoPushClient in production)."""

    def send_push_notifications(self, messages: list[ExpoPushMessage]) -> list[ExpoPushTicket]:
        ...

    def get_push_receipts(self, ticket_ids: list[str]) -> dict[str, ExpoPushReceipt]:
        ...


@dataclass
class FanOutResult:
    """Counts for one fan-out pass (logs and webhook response)."""
    beacon_id: str
    recipients: int = 0
    recipients_without_tokens: int = 0
    messages: int = 0
    tickets_saved: int = 0
    rejected: int = 0
    failed_batches: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "beacon_id": self.beacon_id,
            "recipients": self.recipients,
            "recipients_without_tokens": self.recipients_without_tokens,
            "messages": self.messages,
            "tickets_saved": self.tickets_saved,
            "rejected": self.rejected,
            "failed_batches": self.failed_batches,
        }


def _is_success_ticket(ticket: Any) -> bool:
    return isinstance(ticket, dict) and ticket.get("status") == TICKET_STATUS_OK and bool(ticket.get("id"))


class FanOutSender:
    """Sends beacon pushes and records one pending ticket per accepted message."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        gateway: PushGateway,
        config: PushPipelineConfig | None = None,
        *,
        preference_sources: Sequence[PreferenceSource] = DEFAULT_PREFERENCE_SOURCES,
        token_sources: Sequence[TokenSource] = DEFAULT_TOKEN_SOURCES,
    ) -> None:
        self._session_factory = session_factory
        self._gateway = gateway
        self._config = config or get_push_config()
        self._preference_sources = preference_sources
        self._token_sources = token_sources

    def fan_out_for_beacon(self, beacon_id: str, beacon: Beacon) -> FanOutResult:
        result = FanOutResult(beacon_id=beacon_id)
        owner_uid = beacon.owner_uid
        if not owner_uid:
            return result

        recipients = eligible_recipients(
            self._session_factory,
            beacon.allowed_uids,
            owner_uid,
            max_workers=self._config.max_lookup_workers,
            sources=self._preference_sources,
        )
        result.recipients = len(recipients)
        if not recipients:
            logger.info("Beacon %s: no eligible recipients for owner %s", beacon_id, owner_uid)
            return result

        tokens_by_uid = lookup_per_recipient(
            self._session_factory,
            recipients,
            lambda db, uid: get_all_expo_tokens(db, uid, self._token_sources),
            max_workers=self._config.max_lookup_workers,
            what="Token",
        )

        title = beacon_title(beacon)
        body = beacon_body(beacon)
        data = beacon_push_data(beacon_id, owner_uid)

        db = self._session_factory()
        try:
            for recipient_uid in recipients:
                if recipient_uid not in tokens_by_uid:
                    continue  # token read failed; already logged
                tokens = tokens_by_uid[recipient_uid]
                if not tokens:
                    result.recipients_without_tokens += 1
                    logger.debug("Beacon %s: recipient %s has no valid push tokens", beacon_id, recipient_uid)
                    continue
                messages: list[ExpoPushMessage] = [
                    {
                        "to": token,
                        "title": title,
                        "body": body,
                        "data": data,
                        "sound": PUSH_SOUND,
                        "priority": PUSH_PRIORITY,
                    }
                    for token in tokens
                ]
                for batch in chunk_items(messages, self._config.send_chunk_size):
                    self._send_batch(db, batch, recipient_uid=recipient_uid, owner_uid=owner_uid,
                                     beacon_id=beacon_id, result=result)
        finally:
            db.close()

        logger.info(
            "Beacon %s fan-out: recipients=%s messages=%s tickets=%s rejected=%s failed_batches=%s no_tokens=%s",
            beacon_id,
            result.recipients,
            result.messages,
            result.tickets_saved,
            result.rejected,
            result.failed_batches,
            result.recipients_without_tokens,
        )
        return result

    def _send_batch(
        self,
        db: Session,
        batch: list[ExpoPushMessage],
        *,
        recipient_uid: str,
        owner_uid: str,
        beacon_id: str,
        result: FanOutResult,
    ) -> None:
        try:
            tickets = self._gateway.send_push_notifications(batch)
        except Exception as e:
            result.failed_batches += 1
            logger.error(
                "Expo send error recipient=%s owner=%s beacon=%s messages=%s: %s",
                recipient_uid, owner_uid, beacon_id, len(batch), e, exc_info=True,
            )
            return
        result.messages += len(batch)
        if len(tickets) != len(batch):
            # Alignment by position is the only mapping; without it no ticket can be attributed
            result.failed_batches += 1
            logger.error(
                "Expo returned %s tickets for %s messages recipient=%s beacon=%s; not persisting batch",
                len(tickets), len(batch), recipient_uid, beacon_id,
            )
            return

        saved = 0
        rejected = 0
        try:
            for message, ticket in zip(batch, tickets):
                if not _is_success_ticket(ticket):
                    rejected += 1
                    logger.debug(
                        "Expo rejected message recipient=%s beacon=%s: %s",
                        recipient_uid, beacon_id, ticket,
                    )
                    continue
                save_ticket(
                    db,
                    str(ticket["id"]),
                    subscriber_uid=recipient_uid,
                    friend_uid=owner_uid,
                    beacon_id=beacon_id,
                    token=message["to"],
                )
                saved += 1
            db.commit()
        except Exception as e:
            db.rollback()
            result.failed_batches += 1
            logger.error(
                "Saving tickets failed recipient=%s owner=%s beacon=%s: %s",
                recipient_uid, owner_uid, beacon_id, e, exc_info=True,
            )
            return
        result.tickets_saved += saved
        result.rejected += rejected
