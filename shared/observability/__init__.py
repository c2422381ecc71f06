from .setup import setup_observability
from .metrics import (
    butcher_orders_created_total,
    butcher_deposits_cents_total,
    butcher_webhook_events_total,
    butcher_status_updates_total,
    butcher_bulk_status_orders_total
)
