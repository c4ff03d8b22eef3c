"""
Centralized constants for the push pipeline (Encapsulate What Changes).

Change job IDs, statuses or gateway codes here instead of scattering literals across
main, services and routes. Tunables (TTL, batch sizes, interval) come from push_config.
"""
# Scheduler job IDs (must match ids used in main.py add_job)
RECEIPT_JOB_ID = "expo_receipts"

# Delivery ticket lifecycle: pending -> ok | error (terminal)
TICKET_STATUS_PENDING = "pending"
TICKET_STATUS_OK = "ok"
TICKET_STATUS_ERROR = "error"

# Expo receipt error code (details.error) that means the token is gone
EXPO_ERROR_DEVICE_NOT_REGISTERED = "DeviceNotRegistered"

# Push payload routing (read by the mobile client when a notification is tapped)
BEACON_PUSH_TYPE = "beacon"
PUSH_SOUND = "default"
PUSH_PRIORITY = "high"

# Message composer fallbacks
GENERIC_BEACON_TITLE = "A friend lit a beacon"
GENERIC_BEACON_BODY = "A new beacon was lit"

# Canonical rows created by the legacy migration have no known platform
UNKNOWN_PLATFORM = "unknown"
