from celery import Task


class AsyncTask(Task):
    """
    Runs `async def` Celery tasks on the persistent event loop of the worker process.
    One loop per process keeps the async SQLAlchemy pool bound to a single loop.
    """
    def __call__(self, *args, **kwargs):
        from .celery_app import get_worker_loop

        loop = get_worker_loop()
        if loop is None:
            raise RuntimeError("Asyncio event loop not initialized for worker process")

        return loop.run_until_complete(self.run(*args, **kwargs))
