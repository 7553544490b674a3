"""
Prometheus metrics collection.
"""

from prometheus_client import Counter, Gauge, Histogram

# ============================================================
# HTTP Metrics
# ============================================================

http_requests_total = Counter(
    "tresorier_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "tresorier_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_errors_total = Counter(
    "tresorier_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "error_type"],
)

# ============================================================
# Ledger Metrics
# ============================================================

ledger_entries_total = Counter(
    "tresorier_ledger_entries_total",
    "Ledger entries appended",
    ["kind", "status"],
)

ledger_transitions_total = Counter(
    "tresorier_ledger_transitions_total",
    "Ledger entry status transitions",
    ["kind", "status"],
)

deposits_duplicate_total = Counter(
    "tresorier_deposits_duplicate_total",
    "Deposit callbacks ignored as duplicates",
)

# ============================================================
# Withdrawal Metrics
# ============================================================

withdrawals_total = Counter(
    "tresorier_withdrawals_total",
    "Withdrawal requests by mode and outcome",
    ["mode", "outcome"],
)

withdrawals_pending = Gauge(
    "tresorier_withdrawals_pending",
    "Withdrawals awaiting settlement in this process",
)

# ============================================================
# Verification Metrics
# ============================================================

verification_attempts_total = Counter(
    "tresorier_verification_attempts_total",
    "Verification actions by method and outcome",
    ["method", "outcome"],
)

verification_attempts_swept_total = Counter(
    "tresorier_verification_attempts_swept_total",
    "Expired verification attempts removed by the sweeper",
)

# ============================================================
# Gateway Metrics
# ============================================================

gateway_requests_total = Counter(
    "tresorier_gateway_requests_total",
    "External gateway requests",
    ["gateway", "operation", "status"],
)

gateway_request_duration_seconds = Histogram(
    "tresorier_gateway_request_duration_seconds",
    "External gateway request duration",
    ["gateway", "operation"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

gateway_circuit_breaker_state_changes_total = Counter(
    "tresorier_gateway_circuit_breaker_state_changes_total",
    "Gateway circuit breaker transitions",
    ["gateway", "state"],
)

# ============================================================
# Cache Metrics
# ============================================================

cache_hits_total = Counter(
    "tresorier_cache_hits_total",
    "Total cache hits",
    ["cache_type"],
)

cache_misses_total = Counter(
    "tresorier_cache_misses_total",
    "Total cache misses",
    ["cache_type"],
)
