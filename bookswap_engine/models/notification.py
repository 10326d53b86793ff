from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, TypedDict


class NotificationKind(str, Enum):
    NEW_LISTING = "new_listing"
    MESSAGE = "message"
    TRANSACTION = "transaction"
    REVIEW = "review"
    SYSTEM = "system"


class KindPresentation(NamedTuple):
    icon: str
    # str.format template over the notification payload; None closes the surface
    destination: Optional[str]


KIND_PRESENTATION: Dict[NotificationKind, KindPresentation] = {
    NotificationKind.NEW_LISTING: KindPresentation("fas fa-book", "browse.html?book={bookId}"),
    NotificationKind.MESSAGE: KindPresentation("fas fa-envelope", "messages.html?conversation={conversationId}"),
    NotificationKind.TRANSACTION: KindPresentation("fas fa-money-bill-wave", "dashboard.html?tab=transactions"),
    NotificationKind.REVIEW: KindPresentation("fas fa-star", "dashboard.html?tab=reviews"),
    NotificationKind.SYSTEM: KindPresentation("fas fa-bell", None),
}


class NotificationDocument(TypedDict, total=False):
    _id: str
    kind: str
    message: str
    created_at: str
    read: bool
    # dropdown was opened while this notification existed
    seen: bool
    link: Optional[str]
    payload: Dict[str, Any]
