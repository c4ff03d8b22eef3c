"""
Tests for the ticket store and the receipt reconciler.
"""

from datetime import timedelta

from beacon_push.core.errors import (
    PushGatewayError,
    is_permanent_token_error,
    permanent_token_error_reason,
    receipt_error_code,
)
from beacon_push.core.push_config import PushPipelineConfig
from beacon_push.models import PushTicket, PushToken
from beacon_push.services import receipts as receipts_module
from beacon_push.services.receipts import ReceiptReconciler
from beacon_push.services.tickets import list_pending_tickets, mark_ticket_error, mark_ticket_ok, save_ticket

from conftest import add_device_token, expo_token

DEVICE_NOT_REGISTERED = {
    'status': 'error',
    'message': 'The recipient device is not registered with FCM.',
    'details': {'error': 'DeviceNotRegistered'},
}


def _pending(db, ticket_id, *, uid='r1', token=None, created_at):
    save_ticket(
        db,
        ticket_id,
        subscriber_uid=uid,
        friend_uid='owner',
        beacon_id='b1',
        token=token or expo_token(uid),
        now=created_at,
    )
    db.commit()


def _ticket(db, ticket_id):
    db.expire_all()
    return db.get(PushTicket, ticket_id)


# ============================================================================
# Test: error rules
# ============================================================================


class TestErrorRules:

    def test_device_not_registered_is_permanent(self):
        assert is_permanent_token_error('DeviceNotRegistered')
        assert permanent_token_error_reason('DeviceNotRegistered') == 'device unregistered'

    def test_other_codes_keep_the_token(self):
        for code in ('MessageTooBig', 'MessageRateExceeded', 'InvalidCredentials', None, ''):
            assert not is_permanent_token_error(code)

    def test_receipt_error_code_reads_details_error(self):
        assert receipt_error_code({'error': 'DeviceNotRegistered'}) == 'DeviceNotRegistered'
        assert receipt_error_code({}) is None
        assert receipt_error_code('DeviceNotRegistered') is None
        assert receipt_error_code(None) is None


# ============================================================================
# Test: ticket store
# ============================================================================


class TestTicketStore:

    def test_save_ticket_is_idempotent(self, test_db_session, now):
        _pending(test_db_session, 't1', created_at=now)
        _pending(test_db_session, 't1', uid='someone-else', created_at=now + timedelta(hours=1))

        assert test_db_session.query(PushTicket).count() == 1
        assert _ticket(test_db_session, 't1').subscriber_uid == 'r1'

    def test_list_pending_respects_cutoff_status_and_limit(self, test_db_session, now):
        _pending(test_db_session, 'old', created_at=now - timedelta(hours=50))
        _pending(test_db_session, 'a', created_at=now - timedelta(hours=2))
        _pending(test_db_session, 'b', created_at=now - timedelta(hours=1))
        _pending(test_db_session, 'done', created_at=now - timedelta(hours=1))
        mark_ticket_ok(test_db_session, 'done', now=now)
        test_db_session.commit()

        cutoff = now - timedelta(hours=48)
        assert [t.id for t in list_pending_tickets(test_db_session, created_after=cutoff, limit=10)] == ['a', 'b']
        assert [t.id for t in list_pending_tickets(test_db_session, created_after=cutoff, limit=1)] == ['a']

    def test_status_transitions_happen_once(self, test_db_session, now):
        _pending(test_db_session, 't1', created_at=now)

        assert mark_ticket_error(test_db_session, 't1', message='boom', details={'error': 'MessageTooBig'}, now=now)
        assert not mark_ticket_ok(test_db_session, 't1', now=now)
        assert not mark_ticket_error(test_db_session, 't1', message='again', details=None, now=now)
        test_db_session.commit()

        ticket = _ticket(test_db_session, 't1')
        assert ticket.status == 'error'
        assert ticket.error == 'boom'
        assert ticket.details == {'error': 'MessageTooBig'}

    def test_marking_unknown_ticket_is_false(self, test_db_session, now):
        assert not mark_ticket_ok(test_db_session, 'missing', now=now)


# ============================================================================
# Test: ReceiptReconciler
# ============================================================================


class TestReceiptReconciler:

    def test_ok_receipt_resolves_ticket(self, reconciler, fake_gateway, test_db_session, now):
        _pending(test_db_session, 't1', created_at=now - timedelta(minutes=20))
        fake_gateway.receipts['t1'] = {'status': 'ok'}

        result = reconciler.run(now=now)

        assert result.pending == 1
        assert result.ok == 1
        assert _ticket(test_db_session, 't1').status == 'ok'

    def test_missing_receipt_leaves_ticket_pending(self, reconciler, test_db_session, now):
        _pending(test_db_session, 't1', created_at=now - timedelta(minutes=20))

        result = reconciler.run(now=now)

        assert result.awaiting_receipt == 1
        assert _ticket(test_db_session, 't1').status == 'pending'

    def test_device_not_registered_marks_error_and_prunes_token(self, reconciler, fake_gateway, test_db_session, now):
        add_device_token(test_db_session, 'r1', expo_token('dead'), installation_id='i-1')
        add_device_token(test_db_session, 'r1', expo_token('alive'), installation_id='i-2')
        _pending(test_db_session, 't1', token=expo_token('dead'), created_at=now - timedelta(hours=1))
        fake_gateway.receipts['t1'] = DEVICE_NOT_REGISTERED

        result = reconciler.run(now=now)

        assert result.errors == 1
        assert result.pruned_tokens == 1
        ticket = _ticket(test_db_session, 't1')
        assert ticket.status == 'error'
        assert ticket.error == DEVICE_NOT_REGISTERED['message']
        assert ticket.details == {'error': 'DeviceNotRegistered'}
        assert [r.token for r in test_db_session.query(PushToken).all()] == [expo_token('alive')]

    def test_other_errors_keep_the_token(self, reconciler, fake_gateway, test_db_session, now):
        add_device_token(test_db_session, 'r1', expo_token('r1'))
        _pending(test_db_session, 't1', created_at=now - timedelta(hours=1))
        fake_gateway.receipts['t1'] = {'status': 'error', 'message': 'too big', 'details': {'error': 'MessageTooBig'}}

        result = reconciler.run(now=now)

        assert result.errors == 1
        assert result.pruned_tokens == 0
        assert test_db_session.query(PushToken).count() == 1

    def test_second_tick_changes_nothing(self, reconciler, fake_gateway, test_db_session, now):
        add_device_token(test_db_session, 'r1', expo_token('r1'))
        _pending(test_db_session, 't1', created_at=now - timedelta(hours=1))
        fake_gateway.receipts['t1'] = DEVICE_NOT_REGISTERED

        reconciler.run(now=now)
        second = reconciler.run(now=now + timedelta(minutes=15))

        assert second.pending == 0
        assert len(fake_gateway.receipt_requests) == 1
        assert _ticket(test_db_session, 't1').status == 'error'

    def test_tickets_past_ttl_are_not_polled(self, reconciler, fake_gateway, test_db_session, now):
        _pending(test_db_session, 'stale', created_at=now - timedelta(hours=50))
        fake_gateway.receipts['stale'] = {'status': 'ok'}

        result = reconciler.run(now=now)

        assert result.pending == 0
        assert fake_gateway.receipt_requests == []
        assert _ticket(test_db_session, 'stale').status == 'pending'

    def test_ids_are_chunked(self, session_factory, fake_gateway, test_db_session, now):
        for i in range(5):
            _pending(test_db_session, f't{i}', created_at=now - timedelta(minutes=30 - i))
        reconciler = ReceiptReconciler(
            session_factory, fake_gateway, PushPipelineConfig(receipt_chunk_size=2, max_lookup_workers=1)
        )

        result = reconciler.run(now=now)

        assert result.chunks == 3
        assert [len(r) for r in fake_gateway.receipt_requests] == [2, 2, 1]

    def test_query_limit_defers_the_rest_to_next_tick(self, session_factory, fake_gateway, test_db_session, now):
        for i in range(3):
            _pending(test_db_session, f't{i}', created_at=now - timedelta(minutes=30 - i))
            fake_gateway.receipts[f't{i}'] = {'status': 'ok'}
        reconciler = ReceiptReconciler(
            session_factory, fake_gateway, PushPipelineConfig(receipt_query_limit=2, max_lookup_workers=1)
        )

        first = reconciler.run(now=now)
        second = reconciler.run(now=now)

        assert (first.ok, second.ok) == (2, 1)

    def test_failed_receipt_request_leaves_tickets_pending(self, reconciler, fake_gateway, test_db_session, now):
        _pending(test_db_session, 't1', created_at=now - timedelta(hours=1))
        fake_gateway.fail_receipts = True

        result = reconciler.run(now=now)

        assert result.failed_chunks == 1
        assert _ticket(test_db_session, 't1').status == 'pending'

        fake_gateway.fail_receipts = False
        fake_gateway.receipts['t1'] = {'status': 'ok'}
        assert reconciler.run(now=now).ok == 1

    def test_no_pending_tickets_makes_no_request(self, reconciler, fake_gateway, now):
        result = reconciler.run(now=now)

        assert result.pending == 0
        assert fake_gateway.receipt_requests == []


class TestReceiptReconcilerFailureIsolation:

    def _reconciler(self, session_factory, fake_gateway):
        return ReceiptReconciler(
            session_factory, fake_gateway, PushPipelineConfig(receipt_chunk_size=1, max_lookup_workers=1)
        )

    def test_failed_chunk_and_failed_prune_do_not_block_other_chunks(
        self, session_factory, fake_gateway, test_db_session, now, monkeypatch
    ):
        add_device_token(test_db_session, 'r2', expo_token('r2'))
        _pending(test_db_session, 't1', uid='r1', created_at=now - timedelta(hours=2))
        _pending(test_db_session, 't2', uid='r2', created_at=now - timedelta(hours=1))
        requests = []

        def get_push_receipts(ticket_ids):
            requests.append(list(ticket_ids))
            if len(requests) == 1:
                raise PushGatewayError('Expo API error: 502', status_code=502)
            return {'t2': DEVICE_NOT_REGISTERED}

        def remove_token(db, uid, token):
            raise RuntimeError('database unavailable')

        fake_gateway.get_push_receipts = get_push_receipts
        monkeypatch.setattr(receipts_module, 'remove_token', remove_token)

        result = self._reconciler(session_factory, fake_gateway).run(now=now)

        assert requests == [['t1'], ['t2']]
        assert result.chunks == 2
        assert result.failed_chunks == 1
        assert result.errors == 1
        assert result.pruned_tokens == 0
        assert result.prune_failures == 1
        assert _ticket(test_db_session, 't1').status == 'pending'
        assert _ticket(test_db_session, 't2').status == 'error'
        assert test_db_session.query(PushToken).count() == 1

    def test_status_update_failure_rolls_back_only_that_chunk(
        self, session_factory, fake_gateway, test_db_session, now, monkeypatch
    ):
        _pending(test_db_session, 't1', uid='r1', created_at=now - timedelta(hours=2))
        _pending(test_db_session, 't2', uid='r2', created_at=now - timedelta(hours=1))
        fake_gateway.receipts['t1'] = {'status': 'ok'}
        fake_gateway.receipts['t2'] = {'status': 'ok'}
        real_mark_ok = receipts_module.mark_ticket_ok

        def mark_ticket_ok(db, ticket_id, *, now=None):
            if ticket_id == 't1':
                raise RuntimeError('deadlock detected')
            return real_mark_ok(db, ticket_id, now=now)

        monkeypatch.setattr(receipts_module, 'mark_ticket_ok', mark_ticket_ok)

        result = self._reconciler(session_factory, fake_gateway).run(now=now)

        assert result.failed_chunks == 1
        assert result.ok == 1
        assert _ticket(test_db_session, 't1').status == 'pending'
        assert _ticket(test_db_session, 't2').status == 'ok'
