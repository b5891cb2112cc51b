# moviestream/monitoring/metrics.py
from prometheus_client import Counter, Gauge

# Метрики стриминга
STREAM_REQUESTS = Counter(
    'stream_requests_total',
    'Total number of stream requests',
    ['status']
)

STREAM_BYTES_SERVED = Counter(
    'stream_bytes_served_total',
    'Total bytes served for streaming'
)

STREAM_ERRORS = Counter(
    'stream_errors_total',
    'Total number of stream errors',
    ['error_type']
)

ACTIVE_STREAMS = Gauge(
    'active_streams',
    'Number of response bodies currently being streamed'
)

# Метрики аналитики
STREAM_STARTS_RECORDED = Counter(
    'stream_starts_recorded_total',
    'Total number of recorded stream starts',
    ['backend', 'result']
)

STREAM_CLIENT_DISCONNECTS = Counter(
    'stream_client_disconnects_total',
    'Number of streams aborted by the client'
)
