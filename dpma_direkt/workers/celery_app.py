from celery import Celery

from dpma_direkt.core.config import get_settings

settings = get_settings()

REGISTER_TASK = "dpma_direkt.workers.tasks.register_trademark"

celery = Celery(
    "dpma_direkt",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["dpma_direkt.workers.tasks"],
)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_default_queue=settings.registration_queue,
    task_routes={REGISTER_TASK: {"queue": settings.registration_queue}},
    task_time_limit=settings.registration_task_time_limit_seconds,
    # A worker holds one wizard run at a time.
    worker_prefetch_multiplier=1,
)
