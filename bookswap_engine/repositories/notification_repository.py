import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from bookswap_engine.database.store import KeyValueStore
from bookswap_engine.models.notification import NotificationDocument, NotificationKind
from bookswap_engine.repositories.conversation_repository import new_id, utc_now
from bookswap_engine.utils.errors import NoUserError, NotFoundError

logger = logging.getLogger(__name__)

NOTIFICATIONS_KEY = "bookswap_notifications"

Predicate = Callable[[Dict[str, Any]], bool]


def notifications_key(user_id: str) -> str:
    return f"{NOTIFICATIONS_KEY}:{user_id}"


def notification_filter(name: str) -> Predicate:
    """Predicate for the notifications page filters: ``all``, ``unread`` or a kind."""
    if name == "all":
        return lambda n: True
    if name == "unread":
        return lambda n: not n["read"]
    kind = NotificationKind(name).value
    return lambda n: n["kind"] == kind


class NotificationRepository:
    """
    Per-user notification lists, stored newest first.

    Insert-at-head keeps the stored order equal to recency, so "most recent N"
    and filtered views never need to sort.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._store = store
        self._clock = clock
        self._new_id = id_factory

    def _load(self, user_id: str) -> List[Dict[str, Any]]:
        blob = self._store.get(notifications_key(user_id))
        if not blob:
            return []
        return json.loads(blob)

    def _save(self, user_id: str, notifications: List[Dict[str, Any]]) -> None:
        self._store.set(notifications_key(user_id), json.dumps(notifications))

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise NoUserError("Please log in to manage notifications")
        return user_id

    def add(
        self,
        user_id: Optional[str],
        kind: Union[NotificationKind, str],
        message: str,
        payload: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> NotificationDocument:
        user_id = self._require_user(user_id)
        kind = NotificationKind(kind)
        doc: NotificationDocument = {
            "_id": self._new_id(),
            "kind": kind.value,
            "message": message,
            "created_at": self._clock().isoformat(),
            "read": False,
            "seen": False,
            "link": link or None,
            "payload": dict(payload or {}),
        }
        notifications = self._load(user_id)
        notifications.insert(0, doc)
        self._save(user_id, notifications)
        logger.info(f"Created notification for user {user_id}: {kind.value}")
        return doc

    def get(self, user_id: Optional[str], notification_id: str) -> NotificationDocument:
        for notification in self.list_for_user(user_id):
            if notification["_id"] == notification_id:
                return notification
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")

    def mark_read(self, user_id: Optional[str], notification_id: str) -> bool:
        user_id = self._require_user(user_id)
        notifications = self._load(user_id)
        for notification in notifications:
            if notification["_id"] != notification_id:
                continue
            if notification["read"]:
                return False
            notification["read"] = True
            self._save(user_id, notifications)
            return True
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")

    def mark_all_read(self, user_id: Optional[str]) -> int:
        user_id = self._require_user(user_id)
        return self._flag_all(user_id, "read")

    def mark_all_seen(self, user_id: Optional[str]) -> int:
        user_id = self._require_user(user_id)
        return self._flag_all(user_id, "seen")

    def _flag_all(self, user_id: str, flag: str) -> int:
        notifications = self._load(user_id)
        changed = 0
        for notification in notifications:
            if not notification[flag]:
                notification[flag] = True
                changed += 1
        if changed:
            self._save(user_id, notifications)
            logger.info(f"Marked {changed} notifications as {flag} for user {user_id}")
        return changed

    def list_for_user(self, user_id: Optional[str]) -> List[NotificationDocument]:
        if not user_id:
            return []
        return self._load(user_id)

    def unread_count(self, user_id: Optional[str]) -> int:
        return sum(1 for n in self.list_for_user(user_id) if not n["read"])

    def recent_for_user(self, user_id: Optional[str], n: int) -> List[NotificationDocument]:
        if n <= 0:
            return []
        return self.list_for_user(user_id)[:n]

    def filtered_for_user(self, user_id: Optional[str], predicate: Predicate) -> List[NotificationDocument]:
        return [n for n in self.list_for_user(user_id) if predicate(n)]
