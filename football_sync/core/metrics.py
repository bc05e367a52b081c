"""
Prometheus metrics for the football-data sync service.

Metrics exposed:
- football-data.org request counters by endpoint and status
- Provider per-minute request budget gauge
- Upsert outcome counters per entity type
- Stage duration histogram
- Scheduler status gauges
"""
from prometheus_client import Counter, Gauge, Histogram

# External API Metrics
football_data_requests_total = Counter(
    "football_data_requests_total",
    "Total football-data.org requests",
    ["endpoint", "status"]
)

football_data_requests_available_minute = Gauge(
    "football_data_requests_available_minute",
    "Requests left in the current football-data.org minute window"
)

# Sync Metrics
sync_upserts_total = Counter(
    "sync_upserts_total",
    "Upsert outcomes by entity type",
    ["entity", "outcome"]
)

sync_stage_duration_seconds = Histogram(
    "sync_stage_duration_seconds",
    "Duration of a sync stage in seconds",
    ["stage"]
)

sync_runs_total = Counter(
    "sync_runs_total",
    "Sync stage runs by final status",
    ["stage", "status"]
)

# Scheduler Metrics
scheduler_running = Gauge(
    "scheduler_running",
    "Whether the sync scheduler is running (1=running, 0=stopped)"
)

scheduler_jobs_total = Gauge(
    "scheduler_jobs_total",
    "Total number of scheduled jobs"
)


def record_football_data_request(endpoint: str, status: str):
    """Record a football-data.org request (status is the HTTP code or 'error')."""
    football_data_requests_total.labels(endpoint=endpoint, status=status).inc()


def update_football_data_quota(available: int):
    """Update the per-minute request budget gauge."""
    football_data_requests_available_minute.set(available)


def record_upsert(entity: str, outcome: str):
    """Record an upsert outcome (inserted, updated, failed)."""
    sync_upserts_total.labels(entity=entity, outcome=outcome).inc()


def record_stage_run(stage: str, status: str, duration_seconds: float):
    """Record a finished stage run."""
    sync_runs_total.labels(stage=stage, status=status).inc()
    sync_stage_duration_seconds.labels(stage=stage).observe(duration_seconds)


def update_scheduler_metrics():
    """Refresh scheduler gauges from the global scheduler."""
    from football_sync.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    if scheduler and scheduler.running:
        scheduler_running.set(1)
        if scheduler.scheduler:
            scheduler_jobs_total.set(len(scheduler.scheduler.get_jobs()))
    else:
        scheduler_running.set(0)
        scheduler_jobs_total.set(0)
