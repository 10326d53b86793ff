"""
Notification dispatcher.

Projects a user's notifications onto the three presentation surfaces (badge,
dropdown, toasts) and owns toast lifetimes. Everything runs on one execution
context; toast timers come from an injected scheduler.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from bson import ObjectId

from bookswap_engine.models.notification import KIND_PRESENTATION, NotificationKind
from bookswap_engine.repositories.conversation_repository import utc_now
from bookswap_engine.repositories.notification_repository import NotificationRepository
from bookswap_engine.schemas.notification import BadgeView, DropdownView, NotificationView, ToastView
from bookswap_engine.services.session import SessionProvider
from bookswap_engine.utils.errors import NotFoundError
from bookswap_engine.utils.formatting import badge_text, relative_time
from bookswap_engine.utils.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

ENTER_DELAY = 0.01
TOAST_TIMEOUT = 5.0
EXIT_DELAY = 0.3
DROPDOWN_SIZE = 5


def default_destination(notification: Dict[str, Any]) -> Optional[str]:
    if notification.get("link"):
        return notification["link"]
    template = KIND_PRESENTATION[NotificationKind(notification["kind"])].destination
    if template is None:
        return None
    try:
        return template.format(**notification.get("payload", {}))
    except KeyError:
        # payload lacks the id the query string needs; land on the page itself
        return template.split("?", 1)[0]


class ToastState(str, Enum):
    ENTERING = "entering"
    VISIBLE = "visible"
    LEAVING = "leaving"
    REMOVED = "removed"


class Toast:

    def __init__(self, notification: Dict[str, Any]) -> None:
        self.id = str(ObjectId())
        self.notification = notification
        self.state = ToastState.ENTERING
        self.enter_timer: Optional[TimerHandle] = None
        self.timeout_timer: Optional[TimerHandle] = None
        self.exit_timer: Optional[TimerHandle] = None

    def cancel_timers(self) -> None:
        for timer in (self.enter_timer, self.timeout_timer, self.exit_timer):
            if timer is not None:
                timer.cancel()


class NotificationDispatcher:

    def __init__(
        self,
        repository: NotificationRepository,
        session: SessionProvider,
        scheduler: Scheduler,
        navigate: Optional[Callable[[str], None]] = None,
        on_toast_removed: Optional[Callable[[Toast], None]] = None,
        dropdown_size: int = DROPDOWN_SIZE,
        toast_timeout: float = TOAST_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._session = session
        self._scheduler = scheduler
        self._navigate = navigate
        self._on_toast_removed = on_toast_removed
        self._dropdown_size = dropdown_size
        self._toast_timeout = toast_timeout
        self._clock = clock
        self._toasts: List[Toast] = []
        self.dropdown_open = False
        self.last_destination: Optional[str] = None

    @property
    def repository(self) -> NotificationRepository:
        return self._repository

    def _active_user_id(self) -> Optional[str]:
        user = self._session.current_user()
        return user["id"] if user else None

    def render(self, notification: Dict[str, Any]) -> NotificationView:
        kind = NotificationKind(notification["kind"])
        return NotificationView(
            id=notification["_id"],
            kind=kind,
            message=notification["message"],
            created_at=notification["created_at"],
            time_label=relative_time(notification["created_at"], self._clock()),
            icon=KIND_PRESENTATION[kind].icon,
            read=notification["read"],
            seen=notification["seen"],
            link=notification.get("link"),
            payload=notification.get("payload", {}),
        )

    # badge

    def badge(self, user_id: Optional[str]) -> BadgeView:
        count = self._repository.unread_count(user_id)
        return BadgeView(visible=count > 0, count=count, text=badge_text(count))

    # dropdown

    def dropdown(self, user_id: Optional[str]) -> DropdownView:
        items = [self.render(n) for n in self._repository.recent_for_user(user_id, self._dropdown_size)]
        return DropdownView(
            open=self.dropdown_open,
            items=items,
            empty_text=None if items else "No notifications yet",
        )

    def open_dropdown(self, user_id: Optional[str]) -> DropdownView:
        self.dropdown_open = True
        # opening only marks entries seen; reading them takes an explicit click
        if user_id:
            self._repository.mark_all_seen(user_id)
        return self.dropdown(user_id)

    def close_dropdown(self) -> None:
        self.dropdown_open = False

    def toggle_dropdown(self, user_id: Optional[str]) -> DropdownView:
        if self.dropdown_open:
            self.close_dropdown()
            return self.dropdown(user_id)
        return self.open_dropdown(user_id)

    def handle_document_click(self, inside_dropdown: bool) -> bool:
        """Outside clicks close the dropdown; returns whether it is still open."""
        if not inside_dropdown:
            self.close_dropdown()
        return self.dropdown_open

    def mark_all_read(self, user_id: Optional[str]) -> int:
        return self._repository.mark_all_read(user_id)

    # toasts

    def notify(
        self,
        user_id: Optional[str],
        kind: Union[NotificationKind, str],
        message: str,
        payload: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> Dict[str, Any]:
        notification = self._repository.add(user_id, kind, message, payload=payload, link=link)
        if user_id == self._active_user_id():
            self.show_toast(notification)
        return notification

    def show_toast(self, notification: Dict[str, Any]) -> Toast:
        toast = Toast(notification)
        self._toasts.append(toast)
        toast.enter_timer = self._scheduler.call_later(ENTER_DELAY, lambda: self._enter(toast))
        toast.timeout_timer = self._scheduler.call_later(self._toast_timeout, lambda: self._begin_leave(toast))
        return toast

    def _enter(self, toast: Toast) -> None:
        if toast.state is ToastState.ENTERING:
            toast.state = ToastState.VISIBLE

    def _begin_leave(self, toast: Toast) -> bool:
        # whichever trigger arrives first wins; the other becomes a no-op here
        if toast.state in (ToastState.LEAVING, ToastState.REMOVED):
            return False
        toast.state = ToastState.LEAVING
        for timer in (toast.enter_timer, toast.timeout_timer):
            if timer is not None:
                timer.cancel()
        toast.exit_timer = self._scheduler.call_later(EXIT_DELAY, lambda: self._detach(toast))
        return True

    def _detach(self, toast: Toast) -> None:
        if toast not in self._toasts:
            return
        self._toasts.remove(toast)
        toast.state = ToastState.REMOVED
        if self._on_toast_removed is not None:
            self._on_toast_removed(toast)

    def find_toast(self, toast_id: str) -> Optional[Toast]:
        for toast in self._toasts:
            if toast.id == toast_id:
                return toast
        return None

    def dismiss_toast(self, toast_id: str) -> bool:
        toast = self.find_toast(toast_id)
        if toast is None:
            return False
        return self._begin_leave(toast)

    @property
    def toasts(self) -> List[Toast]:
        return list(self._toasts)

    def toast_views(self) -> List[ToastView]:
        return [
            ToastView(
                id=t.id,
                notification_id=t.notification["_id"],
                state=t.state.value,
                message=t.notification["message"],
                icon=KIND_PRESENTATION[NotificationKind(t.notification["kind"])].icon,
            )
            for t in self._toasts
        ]

    # clicks

    def click(self, user_id: Optional[str], notification_id: str, toast_id: Optional[str] = None) -> Optional[str]:
        """Mark read, then navigate to the link, the kind's page, or just close the surface."""
        try:
            notification = self._repository.get(user_id, notification_id)
        except NotFoundError:
            logger.debug(f"Click on missing notification {notification_id}")
            return None
        self._repository.mark_read(user_id, notification_id)
        if toast_id is not None:
            self.dismiss_toast(toast_id)

        destination = default_destination(notification)
        if destination is None:
            self.close_dropdown()
            return None
        self.last_destination = destination
        if self._navigate is not None:
            self._navigate(destination)
        return destination

    def reset(self) -> None:
        for toast in list(self._toasts):
            toast.cancel_timers()
            self._detach(toast)
        self.close_dropdown()
