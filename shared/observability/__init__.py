from .setup import setup_observability, configure_logging
from .metrics import (
    books_orders_created_total,
    books_checkout_total,
    books_checkout_duration_seconds,
    books_saga_compensation_total,
    books_shipping_labels_total,
    books_ratings_submitted_total,
    books_reconciler_runs_total,
    books_reconciler_duration_seconds,
    books_reconciler_updates_total,
    books_courier_failures_total,
    books_active_carts
)
