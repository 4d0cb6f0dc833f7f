from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

import requests

from .model import AttendanceEvent

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def send(self, event: AttendanceEvent) -> None:
        raise NotImplementedError


class NotificationDispatcher(Protocol):
    def dispatch(self, event: AttendanceEvent) -> bool:
        """Schedule delivery and return immediately; True when accepted."""

        raise NotImplementedError


class LoggingNotificationSender(NotificationSender):
    def send(self, event: AttendanceEvent) -> None:
        logger.info(
            "Attendance notification %s for %s (attendance_id=%s)",
            event.direction.value,
            event.person.external_id,
            event.record.attendance_id,
        )


class WebhookNotificationSender(NotificationSender):
    """POST the event as JSON to an outbound messaging gateway."""

    def __init__(self, url: str, *, timeout: float = 10, session: Optional[requests.Session] = None):
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    def send(self, event: AttendanceEvent) -> None:
        response = self._session.post(self._url, json=event.to_dict(), timeout=self._timeout)
        response.raise_for_status()


class ThreadPoolNotificationDispatcher(NotificationDispatcher):
    """Fire-and-forget delivery on a small worker pool.

    Sender failures are logged from the worker and never reach the caller.
    """

    def __init__(self, sender: NotificationSender, *, max_workers: int = 4):
        self._sender = sender
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def dispatch(self, event: AttendanceEvent) -> bool:
        future = self._executor.submit(self._sender.send, event)
        future.add_done_callback(self._log_failure)
        return True

    @staticmethod
    def _log_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning("Attendance notification delivery failed: %s", exc)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
