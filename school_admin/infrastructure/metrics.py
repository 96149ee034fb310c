from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики для кэша справочников
cache_hits_total = Counter('cache_hits_total', 'Total cache hits')
cache_misses_total = Counter('cache_misses_total', 'Total cache misses')

# Итоги use case'ов: outcome = success | код ошибки | skipped
operation_results_total = Counter(
    'operation_results_total',
    'Use case outcomes',
    ['operation', 'outcome']
)

# Отказы расписания по виду пересечения: class | teacher | room
schedule_conflicts_total = Counter(
    'schedule_conflicts_total',
    'Rejected schedule writes by conflict kind',
    ['kind']
)


def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
