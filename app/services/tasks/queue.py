from rq import Queue
from redis import Redis
from app.core.config import settings

_queue: Queue | None = None


def get_queue() -> Queue:
    global _queue
    if _queue is None:
        _queue = Queue(settings.RQ_QUEUE, connection=Redis.from_url(settings.REDIS_URL))
    return _queue

# Import inside function to avoid worker import cycles

def enqueue_regeneration(limit: int | None = None) -> str:
    from app.services.tasks.jobs import regenerate_waveforms_job
    job = get_queue().enqueue(
        regenerate_waveforms_job,
        limit,
        job_timeout=settings.REGENERATE_JOB_TIMEOUT,
        result_ttl=60 * 60,
        failure_ttl=24 * 60 * 60,
        description="regenerate missing waveforms",
    )
    return job.get_id()
