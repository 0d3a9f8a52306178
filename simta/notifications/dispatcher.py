"""
Fire-and-forget notification dispatch.

The workflow hands notifications to a `NotificationDispatcher` after its
transaction has committed. Delivery runs on a small thread pool, so the
request that triggered it never waits for the gateway and never sees its
failures; outcomes are only logged.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

from simta.database.config.config import settings
from simta.notifications.whatsapp import NotificationKind, NotificationResult, Notifier, WhatsAppNotifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Submits notifications to a background pool.

    Parameters
    ----------
    notifier : Notifier
        Channel used for delivery.
    max_workers : int
        Pool size, defaults to ``settings.NOTIFICATION_WORKERS``.
    """

    def __init__(self, notifier: Notifier, max_workers: int | None = None):
        self.notifier = notifier
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.NOTIFICATION_WORKERS,
            thread_name_prefix="simta-notify",
        )
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def dispatch(self, phone: str | None, kind: NotificationKind, **context) -> Future | None:
        """
        Queue one notification.

        Returns the delivery future, or None when the recipient has no phone
        number. Callers are not expected to wait on it.
        """
        if not phone:
            logger.info("[Notify] Recipient has no WhatsApp number - skipping %s", kind.value)
            return None

        try:
            future = self._executor.submit(self._deliver, phone, kind, context)
        except RuntimeError:
            logger.warning("[Notify] Dispatcher is shut down - dropping %s", kind.value)
            return None

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _deliver(self, phone: str, kind: NotificationKind, context: dict) -> NotificationResult:
        try:
            result = self.notifier.notify(phone, kind, **context)
        except Exception as e:
            logger.exception("[Notify] %s notification failed", kind.value)
            return NotificationResult(success=False, error=str(e))

        if result.success:
            logger.info("[Notify] %s notification delivered", kind.value)
        else:
            logger.info(
                "[Notify] %s notification not delivered (reason=%s, error=%s)",
                kind.value,
                result.reason,
                result.error,
            )
        return result

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def wait_idle(self, timeout: float | None = None) -> None:
        """Block until every queued notification has finished."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_dispatcher: NotificationDispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> NotificationDispatcher:
    """
    Process-wide dispatcher, created on first use with a `WhatsAppNotifier`.
    """
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = NotificationDispatcher(WhatsAppNotifier())
        return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher | None) -> NotificationDispatcher | None:
    """
    Replace the process-wide dispatcher and return the previous one.

    Passing None makes the next `get_dispatcher` call build a fresh default.
    """
    global _dispatcher
    with _dispatcher_lock:
        previous, _dispatcher = _dispatcher, dispatcher
        return previous
