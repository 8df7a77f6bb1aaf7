from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown
from .config import settings
import logging
import asyncio

logging.getLogger('celery.backends.redis').setLevel(logging.ERROR)

_WORKER_LOOP = None


@worker_process_init.connect
def init_async_loop(**kwargs):
    """Create the persistent event loop for this worker process."""
    global _WORKER_LOOP
    _WORKER_LOOP = asyncio.new_event_loop()
    asyncio.set_event_loop(_WORKER_LOOP)
    logging.info(f"Initialized asyncio event loop for worker process {kwargs.get('sender', 'unknown')}")


@worker_process_shutdown.connect
def shutdown_async_loop(**kwargs):
    global _WORKER_LOOP
    if _WORKER_LOOP:
        _WORKER_LOOP.close()
        asyncio.set_event_loop(None)
        _WORKER_LOOP = None
        logging.info("Closed asyncio event loop for worker process")


def get_worker_loop():
    return _WORKER_LOOP


celery_app = Celery(
    "psikotes_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        'psikotes.tasks.auto_generation',
    ]
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    task_routes={
        'psikotes.tasks.auto_generation.*': {'queue': 'generation'},
    },

    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,

    # generation retries with backoff across chunks can take minutes
    task_soft_time_limit=900,
    task_time_limit=1200,

    result_expires=3600,
    broker_connection_retry_on_startup=True,

    beat_schedule={
        'auto-generate-sessions': {
            'task': 'psikotes.tasks.auto_generation.run_auto_generation',
            'schedule': settings.auto_generation_interval_seconds,
        },
    },
)

if __name__ == '__main__':
    celery_app.start()
