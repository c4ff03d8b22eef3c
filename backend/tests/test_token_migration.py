"""
Tests for the legacy token migration (single-token fields -> canonical push_tokens rows).
"""

import base64

from beacon_push.models import PushToken
from beacon_push.services.token_migration import installation_id_for_token, migrate_legacy_tokens

from conftest import expo_token, set_legacy_tokens


class TestInstallationIdForToken:

    def test_base64_without_padding_truncated_to_40(self):
        token = expo_token('abcdefghijklmnopqrstuvwxyz')
        expected = base64.b64encode(token.encode()).decode().rstrip('=')[:40]

        assert installation_id_for_token(token) == expected
        assert len(installation_id_for_token(token)) == 40
        assert '=' not in installation_id_for_token('ExpoPushToken[a]')

    def test_stable_per_token(self):
        assert installation_id_for_token(expo_token('x')) == installation_id_for_token(expo_token('x'))
        assert installation_id_for_token(expo_token('x')) != installation_id_for_token(expo_token('y'))


class TestMigrateLegacyTokens:

    def test_creates_one_row_per_distinct_legacy_token(self, test_db_session):
        set_legacy_tokens(
            test_db_session,
            'u1',
            profile_token=expo_token('p'),
            user_token=expo_token('u'),
            user_old_token=expo_token('u'),
        )

        stats = migrate_legacy_tokens(test_db_session)

        assert stats == {'users': 1, 'created': 2, 'updated': 0}
        rows = test_db_session.query(PushToken).filter(PushToken.uid == 'u1').all()
        assert {r.token for r in rows} == {expo_token('p'), expo_token('u')}
        assert all(r.migrated and r.platform == 'unknown' for r in rows)
        assert {r.installation_id for r in rows} == {
            installation_id_for_token(expo_token('p')),
            installation_id_for_token(expo_token('u')),
        }

    def test_users_without_valid_tokens_are_skipped(self, test_db_session):
        set_legacy_tokens(test_db_session, 'u1', user_token='garbage')
        set_legacy_tokens(test_db_session, 'u2')

        assert migrate_legacy_tokens(test_db_session) == {'users': 0, 'created': 0, 'updated': 0}
        assert test_db_session.query(PushToken).count() == 0

    def test_rerun_updates_in_place(self, test_db_session):
        set_legacy_tokens(test_db_session, 'u1', user_token=expo_token('u'))

        migrate_legacy_tokens(test_db_session)
        stats = migrate_legacy_tokens(test_db_session)

        assert stats == {'users': 1, 'created': 0, 'updated': 1}
        assert test_db_session.query(PushToken).count() == 1
