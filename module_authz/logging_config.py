from __future__ import annotations

import json
import logging
import queue
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener

from module_authz.engine.decision import DECISION_LOGGER_NAME


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for this package.

    Notes:
    - Stdlib logging only; the host (e.g. uvicorn) owns root handlers.
    - Set `AUTHZ_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    """

    normalized = level.upper()
    logging.getLogger("module_authz").setLevel(normalized)
    logging.getLogger("module_authz").propagate = True


class DecisionJsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, message and the decision record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        decision = getattr(record, "authz_decision", None)
        if isinstance(decision, dict):
            payload.update(decision)
        return json.dumps(payload, default=str)


def configure_decision_log(
    handler: logging.Handler | None = None,
    *,
    queue_size: int = 10_000,
    json_format: bool = True,
) -> QueueListener:
    """
    Route decision records through a queue to ``handler`` (stderr by default).

    The decision path only does a non-blocking ``put_nowait``; a background
    listener thread writes to the real sink. Propagation to ancestor loggers
    is switched off. When the queue is full the record is reported through
    ``Handler.handleError`` and dropped, never waited on.

    Returns the started listener; call ``stop()`` at shutdown to flush it.
    """

    sink = handler or logging.StreamHandler()
    if json_format:
        sink.setFormatter(DecisionJsonFormatter())

    records: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=queue_size)

    decision_logger = logging.getLogger(DECISION_LOGGER_NAME)
    for existing in list(decision_logger.handlers):
        if isinstance(existing, QueueHandler):
            decision_logger.removeHandler(existing)
    decision_logger.addHandler(QueueHandler(records))
    decision_logger.setLevel(logging.INFO)
    # Root handlers would write synchronously on the decision path.
    decision_logger.propagate = False

    listener = QueueListener(records, sink, respect_handler_level=True)
    listener.start()
    return listener
