"""
Single source of truth for database tables that exist after migrations (001-003).

Use these names when writing raw SQL (e.g. TRUNCATE). Each table stands in for one
document collection of the mobile app:
  - users, profiles: coarse user documents (legacy single-token mirrors),
  - push_tokens: users/{uid}/pushTokens/{installationId} (canonical, one row per device),
  - friend_subscriptions: users/{uid}/friendSubscriptions/{ownerUid} (canonical opt-in),
  - user_friends: users/{uid}/friends/{friendUid} (legacy opt-in via .notify),
  - expo_push_tickets: one row per accepted gateway message.
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "users",
    "profiles",
    "push_tokens",
    "friend_subscriptions",
    "user_friends",
    "expo_push_tickets",
)
