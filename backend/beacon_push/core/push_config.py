"""
Push pipeline config. .env is the source of truth; these defaults apply only when
the env var is unset. All values read at import time.

Env vars: PUSH_TICKET_TTL_HOURS, PUSH_SEND_CHUNK_SIZE, PUSH_RECEIPT_CHUNK_SIZE,
PUSH_RECEIPT_QUERY_LIMIT, PUSH_RECEIPT_INTERVAL_MINUTES, PUSH_MAX_LOOKUP_WORKERS.

Sender and reconciler take a PushPipelineConfig snapshot at construction so tests can
override any value without touching the environment.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load backend/.env so push config sees env vars regardless of entry point
# (main.py also loads it; this ensures scripts/tests/workers that import push_config do too)
_backend_dir = Path(__file__).resolve().parent.parent.parent
_env_path = _backend_dir / ".env"
load_dotenv(_env_path, override=False)  # load_dotenv no-ops if file missing

_log = logging.getLogger(__name__)


def _int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = os.environ.get(key)
    if raw is None:
        v = default
    else:
        try:
            v = int(raw.strip())
        except ValueError:
            v = default
    if min_val is not None and v < min_val:
        v = min_val
    if max_val is not None and v > max_val:
        v = max_val
    return v


# -----------------------------------------------------------------------------
# Tickets: how long a pending ticket is still worth polling for a receipt
# -----------------------------------------------------------------------------
PUSH_TICKET_TTL_HOURS = _int("PUSH_TICKET_TTL_HOURS", 48, min_val=1, max_val=24 * 7)

# -----------------------------------------------------------------------------
# Gateway limits (Expo: 100 messages per send request, 300 ids per receipts request)
# -----------------------------------------------------------------------------
PUSH_SEND_CHUNK_SIZE = _int("PUSH_SEND_CHUNK_SIZE", 100, min_val=1, max_val=100)
PUSH_RECEIPT_CHUNK_SIZE = _int("PUSH_RECEIPT_CHUNK_SIZE", 300, min_val=1, max_val=1000)
# Max pending tickets read per reconciliation tick; the rest are picked up next tick.
PUSH_RECEIPT_QUERY_LIMIT = _int("PUSH_RECEIPT_QUERY_LIMIT", 2000, min_val=1, max_val=20000)

# -----------------------------------------------------------------------------
# Scheduler and lookup concurrency
# -----------------------------------------------------------------------------
PUSH_RECEIPT_INTERVAL_MINUTES = _int("PUSH_RECEIPT_INTERVAL_MINUTES", 15, min_val=1, max_val=24 * 60)
# Worker threads for per-recipient preference/token reads within one fan-out.
PUSH_MAX_LOOKUP_WORKERS = _int("PUSH_MAX_LOOKUP_WORKERS", 4, min_val=1, max_val=32)

# Log effective config at import so each environment can verify env vars are applied
_log.info(
    "Push config (from env): ticket_ttl_hours=%s send_chunk=%s receipt_chunk=%s "
    "receipt_query_limit=%s receipt_interval_min=%s lookup_workers=%s",
    PUSH_TICKET_TTL_HOURS,
    PUSH_SEND_CHUNK_SIZE,
    PUSH_RECEIPT_CHUNK_SIZE,
    PUSH_RECEIPT_QUERY_LIMIT,
    PUSH_RECEIPT_INTERVAL_MINUTES,
    PUSH_MAX_LOOKUP_WORKERS,
)


@dataclass(frozen=True)
class PushPipelineConfig:
    """Snapshot of push pipeline config for passing into sender and reconciler (e.g. tests)."""
    ticket_ttl_hours: int = 48
    send_chunk_size: int = 100
    receipt_chunk_size: int = 300
    receipt_query_limit: int = 2000
    receipt_interval_minutes: int = 15
    max_lookup_workers: int = 4


def get_push_config() -> PushPipelineConfig:
    return PushPipelineConfig(
        ticket_ttl_hours=PUSH_TICKET_TTL_HOURS,
        send_chunk_size=PUSH_SEND_CHUNK_SIZE,
        receipt_chunk_size=PUSH_RECEIPT_CHUNK_SIZE,
        receipt_query_limit=PUSH_RECEIPT_QUERY_LIMIT,
        receipt_interval_minutes=PUSH_RECEIPT_INTERVAL_MINUTES,
        max_lookup_workers=PUSH_MAX_LOOKUP_WORKERS,
    )
