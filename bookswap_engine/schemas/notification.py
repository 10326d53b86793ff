from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from bookswap_engine.models.notification import NotificationKind


class NotificationCreate(BaseModel):

    # defaults to the logged-in user
    user_id: Optional[str] = None
    kind: NotificationKind
    message: str = Field(min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)
    link: Optional[str] = None


class NotificationView(BaseModel):

    id: str
    kind: NotificationKind
    message: str
    created_at: str
    time_label: str
    icon: str
    read: bool
    seen: bool
    link: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class NotificationList(BaseModel):

    items: List[NotificationView]
    unread_count: int


class BadgeView(BaseModel):

    visible: bool
    count: int
    # None while hidden
    text: Optional[str] = None


class DropdownView(BaseModel):

    open: bool
    items: List[NotificationView]
    empty_text: Optional[str] = None


class ToastView(BaseModel):

    id: str
    notification_id: str
    state: str
    title: str = "New Notification"
    message: str
    icon: str


class ClickResult(BaseModel):

    notification_id: str
    navigate_to: Optional[str] = None


class DocumentClick(BaseModel):

    inside: bool = False
