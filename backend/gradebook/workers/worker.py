from __future__ import annotations

import logging

from rq import Worker

from gradebook.core.config import settings
from gradebook.core.queue import _get_redis_connection

logger = logging.getLogger(__name__)


def main() -> None:
    redis_connection = _get_redis_connection()
    worker = Worker([settings.RQ_QUEUE_NAME], connection=redis_connection)
    logger.info(f"Listening on queue {settings.RQ_QUEUE_NAME}")
    worker.work()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    main()
