from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
books_orders_created_total = Counter(
    "books_orders_created_total",
    "Total orders created",
)

books_checkout_total = Counter(
    "books_checkout_total",
    "Total cart items checked out",
    ["status"] # Labels: 'success', 'failed'
)

books_checkout_duration_seconds = Histogram(
    "books_checkout_duration_seconds",
    "Checkout duration in seconds"
)

books_saga_compensation_total = Counter(
    "books_saga_compensation_total",
    "Total saga compensations triggered",
    ["step_name"] # Labels: 'lock_cart_item', 'reserve_listing', etc.
)

books_shipping_labels_total = Counter(
    "books_shipping_labels_total",
    "Shipping label generation attempts",
    ["status"] # Labels: 'success', 'missing_address', 'failed'
)

books_ratings_submitted_total = Counter(
    "books_ratings_submitted_total",
    "Total seller ratings stored"
)

books_reconciler_runs_total = Counter(
    "books_reconciler_runs_total",
    "Shipment reconciler runs",
    ["outcome"] # Labels: 'completed', 'idle', 'aborted'
)

books_reconciler_duration_seconds = Histogram(
    "books_reconciler_duration_seconds",
    "Shipment reconciler run duration in seconds"
)

books_reconciler_updates_total = Counter(
    "books_reconciler_updates_total",
    "Order status changes written by the reconciler",
    ["status"]
)

books_courier_failures_total = Counter(
    "books_courier_failures_total",
    "Courier API failures",
    ["operation"]
)

books_active_carts = Gauge(
    "books_active_carts",
    "Number of currently active cart sessions"
)
