# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics - single source of truth for all metric objects.
Imported by services, middleware and the board. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "guild_parties_requests_total",
    "Total HTTP requests to the party service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "guild_parties_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "guild_parties_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
SLOT_OPERATIONS = Counter(
    "guild_parties_slot_operations_total",
    "Slot mutations by operation and outcome",
    ["operation", "outcome"],
)
SLOT_CONFLICTS = Counter(
    "guild_parties_slot_conflicts_total",
    "Slot mutations rejected because stored occupancy changed",
    ["operation"],
)
PARTIES_TOTAL = Gauge(
    "guild_parties_parties",
    "Number of parties by type",
    ["type"],
)
MEMBERS_TOTAL = Gauge(
    "guild_parties_members",
    "Number of roster members",
)

# ── Board Metrics (operator side) ──
BOARD_RESYNCS = Counter(
    "guild_parties_board_resyncs_total",
    "Forced reloads triggered by a stale local view",
    ["reason"],
)
BOARD_DROPS = Counter(
    "guild_parties_board_drops_total",
    "Drop gestures handled by the board by outcome",
    ["outcome"],
)
