import contextlib
import logging
import sys
import time
from collections.abc import Iterator
from logging import StreamHandler
from uuid import uuid4

from src.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[StreamHandler(sys.stdout)],
    )


@contextlib.contextmanager
def log_operation(logger: logging.Logger, operation: str, **context) -> Iterator[dict]:
    """Log the start and completion of an operation with its duration.

    The yielded dict is merged into the completion log line, so callers can
    attach result details (counts, failure reasons) before the block exits.
    An exception escaping the block is logged at error level and re-raised.
    """
    operation_id = uuid4().hex[:8]
    started = time.perf_counter()
    details = dict(context)
    logger.info(f"Starting operation {operation} [{operation_id}] {details}")
    try:
        yield details
    except Exception as e:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.error(
            f"Failed operation {operation} [{operation_id}] in {duration_ms:.1f}ms: {e}"
        )
        raise
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"Completed operation {operation} [{operation_id}] in {duration_ms:.1f}ms {details}"
    )
