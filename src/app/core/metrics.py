from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)

RECOMMENDATION_COUNT = Counter(
    "recommendation_computations_total",
    "Total number of recommendation engine calls",
    ["engine", "status"],
)

RECOMMENDATION_DURATION = Histogram(
    "recommendation_duration_seconds",
    "Duration of recommendation engine calls in seconds",
    ["engine"],
)

CACHE_HITS = Counter("cache_hits_total", "Total number of cache hits")
CACHE_MISSES = Counter("cache_misses_total", "Total number of cache misses", ["reason"])
CACHE_EVICTIONS = Counter("cache_evictions_total", "Total number of evicted cache entries")
CACHE_ERRORS = Counter("cache_errors_total", "Total number of internal cache faults")
