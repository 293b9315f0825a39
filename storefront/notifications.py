import itertools
import time
from typing import Callable, Tuple

from .domain import Notification, Severity
from .log import get_logger
from .settings import NOTIFICATION_TTL_SECONDS

logger = get_logger(__name__)


class NotificationCenter:
    """
    Приёмник уведомлений (порт NotificationSink).
    Каждое уведомление исчезает через ttl секунд после появления,
    независимо от дальнейших действий в магазине.
    """

    def __init__(
        self,
        ttl: float = NOTIFICATION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.clock = clock
        self._ids = itertools.count(1)
        self._items: Tuple[Notification, ...] = ()

    def notify(self, message: str, severity: Severity = Severity.SUCCESS) -> None:
        notification = Notification(
            id=str(next(self._ids)),
            message=message,
            severity=severity,
            created_at=self.clock(),
        )
        self._items = self._items + (notification,)
        logger.debug("Уведомление [%s]: %s", severity.value, message)

    def active(self) -> Tuple[Notification, ...]:
        """Неистёкшие уведомления; истёкшие удаляются при чтении"""
        now = self.clock()
        self._items = tuple(n for n in self._items if now - n.created_at < self.ttl)
        return self._items

    def dismiss(self, notification_id: str) -> None:
        self._items = tuple(n for n in self._items if n.id != notification_id)
