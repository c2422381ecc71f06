from prometheus_client import Counter

# Business Metrics
butcher_orders_created_total = Counter(
    "butcher_orders_created_total",
    "Orders created from confirmed deposits",
    ["meat_type"]
)

butcher_deposits_cents_total = Counter(
    "butcher_deposits_cents_total",
    "Deposit amount collected, in cents"
)

butcher_webhook_events_total = Counter(
    "butcher_webhook_events_total",
    "Stripe webhook events received",
    ["event_type", "outcome"]  # outcome: 'created', 'duplicate', 'ignored', 'error'
)

butcher_status_updates_total = Counter(
    "butcher_status_updates_total",
    "Single order status updates",
    ["outcome"]  # Labels: 'updated', 'version_conflict', 'not_found'
)

butcher_bulk_status_orders_total = Counter(
    "butcher_bulk_status_orders_total",
    "Orders touched by bulk status updates",
    ["result"]  # Labels: 'updated', 'skipped', 'conflict'
)
