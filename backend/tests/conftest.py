"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite shared across threads)
- A fake Expo gateway recording every batch and receipt request
- Pipeline config, fan-out sender and receipt reconciler wired to both
- Small data helpers (tokens, preferences, legacy mirrors)
"""

import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules (engine is never connected)
os.environ['DATABASE_URL'] = 'sqlite:///./beacon_push_test.db'
os.environ['EXPO_ACCESS_TOKEN'] = ''

from beacon_push.core.errors import PushGatewayError
from beacon_push.core.push_config import PushPipelineConfig
from beacon_push.db.base import Base
from beacon_push.models import FriendSubscription, Profile, PushToken, User, UserFriend
from beacon_push.services.fanout import FanOutSender
from beacon_push.services.receipts import ReceiptReconciler


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(test_db_engine):
    """Session factory handed to the pipeline (one session per worker/tick)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope='function')
def test_db_session(session_factory):
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Fake gateway
# ============================================================================

class FakeExpoGateway:
    """
    Stand-in for ExpoPushClient.

    Every accepted message gets a fresh ticket id (ticket-1, ticket-2, ...). Tokens in
    reject_tokens get an error ticket (no id); a batch containing a token in fail_tokens
    raises PushGatewayError. receipts maps ticket id -> receipt for get_push_receipts.
    """

    def __init__(self):
        self.sent_batches = []
        self.receipt_requests = []
        self.receipts = {}
        self.reject_tokens = set()
        self.fail_tokens = set()
        self.fail_receipts = False
        self._next_id = 0

    @property
    def sent_messages(self):
        return [m for batch in self.sent_batches for m in batch]

    def send_push_notifications(self, messages):
        batch = list(messages)
        if any(m['to'] in self.fail_tokens for m in batch):
            raise PushGatewayError('Expo API error: 503', status_code=503)
        self.sent_batches.append(batch)
        tickets = []
        for m in batch:
            if m['to'] in self.reject_tokens:
                tickets.append({
                    'status': 'error',
                    'message': f"{m['to']} is not a registered push notification recipient",
                    'details': {'error': 'DeviceNotRegistered'},
                })
            else:
                self._next_id += 1
                tickets.append({'status': 'ok', 'id': f'ticket-{self._next_id}'})
        return tickets

    def get_push_receipts(self, ticket_ids):
        self.receipt_requests.append(list(ticket_ids))
        if self.fail_receipts:
            raise PushGatewayError('Expo API error: 500', status_code=500)
        return {tid: self.receipts[tid] for tid in ticket_ids if tid in self.receipts}


@pytest.fixture
def fake_gateway():
    return FakeExpoGateway()


@pytest.fixture
def push_config():
    """Single lookup worker: SQLite in-memory shares one connection across sessions."""
    return PushPipelineConfig(max_lookup_workers=1)


@pytest.fixture
def sender(session_factory, fake_gateway, push_config):
    return FanOutSender(session_factory, fake_gateway, push_config)


@pytest.fixture
def reconciler(session_factory, fake_gateway, push_config):
    return ReceiptReconciler(session_factory, fake_gateway, push_config)


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Data helpers
# ============================================================================

def expo_token(name):
    """A syntactically valid Expo token for a readable name."""
    return f'ExponentPushToken[{name}]'


def add_device_token(db, uid, token, installation_id=None, platform='ios'):
    row = PushToken(
        uid=uid,
        installation_id=installation_id or f'install-{token}',
        token=token,
        platform=platform,
    )
    db.add(row)
    db.commit()
    return row


def subscribe(db, recipient_uid, owner_uid, enabled=True):
    db.add(FriendSubscription(recipient_uid=recipient_uid, owner_uid=owner_uid, enabled=enabled))
    db.commit()


def legacy_notify(db, recipient_uid, owner_uid, notify=True):
    db.add(UserFriend(user_uid=recipient_uid, friend_uid=owner_uid, notify=notify))
    db.commit()


def set_legacy_tokens(db, uid, *, profile_token=None, user_token=None, user_old_token=None):
    db.merge(Profile(uid=uid, expo_push_token=profile_token))
    db.merge(User(uid=uid, expo_push_token=user_token, push_token=user_old_token))
    db.commit()
