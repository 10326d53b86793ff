"""
Notification producers for events raised by other parts of the marketplace.

Each helper is a thin template over ``NotificationDispatcher.notify`` so the
badge and toast update the same way as for any other notification.
"""

import logging
from typing import Any, Dict, Optional

from bookswap_engine.models.notification import NotificationKind
from bookswap_engine.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

TRANSACTIONS_LINK = "dashboard.html?tab=transactions"


def _price(amount: float) -> str:
    return f"${amount:g}" if float(amount).is_integer() else f"${amount:.2f}"


class NotificationService:

    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self._dispatcher = dispatcher

    def create_notification(
        self,
        user_id: Optional[str],
        kind: NotificationKind,
        message: str,
        payload: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._dispatcher.notify(user_id, kind, message, payload=payload, link=link)

    def create_book_sold_notification(self, user_id: Optional[str], book_title: str, price: float, transaction_id: str) -> Dict[str, Any]:
        """
        Tell a seller that one of their books was marked as sold.

        Args:
            user_id: Seller
            book_title: Title of the book sold
            price: Sale price
            transaction_id: Transaction record ID

        Returns:
            Created notification
        """
        return self.create_notification(
            user_id,
            NotificationKind.TRANSACTION,
            f'Book "{book_title}" marked as sold for {_price(price)}',
            payload={"transactionId": transaction_id},
            link=TRANSACTIONS_LINK,
        )

    def create_purchase_notification(self, user_id: Optional[str], book_title: str, price: float, transaction_id: str) -> Dict[str, Any]:
        return self.create_notification(
            user_id,
            NotificationKind.TRANSACTION,
            f'Successfully purchased "{book_title}" for {_price(price)}',
            payload={"transactionId": transaction_id},
            link=TRANSACTIONS_LINK,
        )

    def create_message_notification(self, user_id: Optional[str], sender_name: str, conversation_id: str) -> Dict[str, Any]:
        return self.create_notification(
            user_id,
            NotificationKind.MESSAGE,
            f"New message from {sender_name}",
            payload={"conversationId": conversation_id},
        )
