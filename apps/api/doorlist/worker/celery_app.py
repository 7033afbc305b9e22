import structlog
from celery import Celery
from celery.signals import task_postrun, task_prerun

from doorlist.core.config import settings
from doorlist.core.logging import configure_logging

configure_logging()

celery_app = Celery(
    "doorlist",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["doorlist.worker.tasks"],
)

celery_app.conf.update(
    accept_content=["json"],
    task_serializer="json",
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "sweep-event-lifecycle": {
            "task": "doorlist.sweep_event_lifecycle",
            "schedule": float(settings.sweep_interval_seconds),
        },
    },
)


@task_prerun.connect
def _bind_task_context(task_id=None, task=None, **kwargs):
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(task_id=task_id, task_name=getattr(task, "name", None))


@task_postrun.connect
def _clear_task_context(**kwargs):
    structlog.contextvars.clear_contextvars()


# run:
# celery -A doorlist.worker.celery_app worker -l INFO
# celery -A doorlist.worker.celery_app beat -l INFO
