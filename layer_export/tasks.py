"""RQ task definitions for running exports in the background."""

from __future__ import annotations

from redis import Redis
from rq import Queue, get_current_job

from .config import QUEUE_CONFIG, ExportConfig, QueueConfig
from .core import ExportRequest
from .core.exceptions import ExportError
from .pipelines import ExportPipeline


def create_queue(config: QueueConfig = QUEUE_CONFIG, connection: Redis | None = None) -> Queue:
    """Return the queue exports are enqueued on.

    Running exports through a fixed pool of workers is what bounds the
    number of concurrent exports and the scratch space they hold.
    """

    connection = connection or Redis.from_url(config.redis_url)
    return Queue(
        name=config.queue_name,
        connection=connection,
        default_timeout=config.default_timeout,
    )


def enqueue_export(request: ExportRequest, queue: Queue | None = None):
    """Schedule ``request`` and return the rq job."""

    queue = queue or create_queue()
    return queue.enqueue(
        "layer_export.tasks.process_export",
        kwargs={"request": request.as_dict()},
        meta={"layer_name": request.layer_name, "export_format": request.export_format},
    )


def process_export(*, request: dict, config: ExportConfig | None = None) -> dict:
    """Execute a layer export and describe the produced artifact."""

    job = get_current_job()
    if job:
        job.meta["progress"] = 0
        job.save_meta()

    pipeline = ExportPipeline.default(config)

    try:
        export_request = ExportRequest.from_dict(request)
    except (KeyError, ValueError) as exc:
        error = ExportError("Invalid export request", details={"reason": str(exc)})
        if job:
            job.meta["error"] = error.as_dict()
            job.save_meta()
        raise error from exc

    artifact = pipeline.run(export_request)

    if job:
        job.meta["progress"] = 100
        job.save_meta()

    return artifact.as_dict()
