"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
redemptions_total = Counter(
    "redemptions_total",
    "Total redemption requests by terminal outcome",
    ["outcome"],
)

uploads_total = Counter(
    "uploads_total",
    "Total files stored",
    ["file_type"],
)

code_collisions_total = Counter(
    "code_collisions_total",
    "Short code draws rejected because the code already existed",
)

verifications_total = Counter(
    "verifications_total",
    "Users that completed verification",
)

shortener_requests_total = Counter(
    "shortener_requests_total",
    "Total link shortener requests",
    ["status"],  # success, error, fallback
)

telegram_requests_total = Counter(
    "telegram_requests_total",
    "Total Telegram API requests",
    ["method", "status"],
)

auto_purge_total = Counter(
    "auto_purge_total",
    "Auto-purge deletions by result",
    ["result"],  # scheduled, deleted, failed
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
)

# Histograms
shortener_request_duration_seconds = Histogram(
    "shortener_request_duration_seconds",
    "Link shortener request duration",
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)

telegram_request_duration_seconds = Histogram(
    "telegram_request_duration_seconds",
    "Telegram API request duration",
    ["method"],
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
