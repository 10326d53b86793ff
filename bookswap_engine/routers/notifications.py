from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from bookswap_engine.engine import Engine
from bookswap_engine.models.user import UserDocument
from bookswap_engine.repositories.notification_repository import notification_filter
from bookswap_engine.schemas.notification import (
    BadgeView,
    ClickResult,
    DocumentClick,
    DropdownView,
    NotificationCreate,
    NotificationList,
    NotificationView,
)
from bookswap_engine.utils.dependencies import get_current_user, get_engine, get_optional_user


router = APIRouter(prefix="/notifications", tags=["notifications"])


def _user_id(user: Optional[UserDocument]) -> Optional[str]:
    return user["id"] if user else None


@router.get("", response_model=NotificationList)
async def list_notifications(
    filter: str = "all",
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: UserDocument = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    try:
        predicate = notification_filter(filter)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown filter: {filter}")
    items = engine.notifications.filtered_for_user(current_user["id"], predicate)
    if limit is not None:
        items = items[:limit]
    return NotificationList(
        items=[engine.dispatcher.render(n) for n in items],
        unread_count=engine.notifications.unread_count(current_user["id"]),
    )


@router.post("", response_model=NotificationView)
async def create_notification(body: NotificationCreate, current_user: Optional[UserDocument] = Depends(get_optional_user), engine: Engine = Depends(get_engine)):
    user_id = body.user_id or _user_id(current_user)
    notification = engine.notification_service.create_notification(user_id, body.kind, body.message, payload=body.payload, link=body.link)
    return engine.dispatcher.render(notification)


@router.get("/badge", response_model=BadgeView)
async def badge(current_user: Optional[UserDocument] = Depends(get_optional_user), engine: Engine = Depends(get_engine)):
    return engine.dispatcher.badge(_user_id(current_user))


@router.get("/dropdown", response_model=DropdownView)
async def dropdown(current_user: Optional[UserDocument] = Depends(get_optional_user), engine: Engine = Depends(get_engine)):
    return engine.dispatcher.dropdown(_user_id(current_user))


@router.post("/dropdown/toggle", response_model=DropdownView)
async def toggle_dropdown(current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    return engine.dispatcher.toggle_dropdown(current_user["id"])


@router.post("/dropdown/click")
async def document_click(body: DocumentClick, engine: Engine = Depends(get_engine)):
    return {"open": engine.dispatcher.handle_document_click(body.inside)}


@router.post("/read-all")
async def mark_all_read(current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    updated = engine.dispatcher.mark_all_read(current_user["id"])
    return {"updated": updated, "badge": engine.dispatcher.badge(current_user["id"])}


@router.post("/{notification_id}/read")
async def mark_read(notification_id: str, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    updated = engine.notifications.mark_read(current_user["id"], notification_id)
    return {"updated": int(updated), "badge": engine.dispatcher.badge(current_user["id"])}


@router.post("/{notification_id}/click", response_model=ClickResult)
async def click(notification_id: str, toast_id: Optional[str] = None, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    destination = engine.dispatcher.click(current_user["id"], notification_id, toast_id=toast_id)
    return ClickResult(notification_id=notification_id, navigate_to=destination)


@router.get("/toasts")
async def toasts(engine: Engine = Depends(get_engine)):
    return {"items": engine.dispatcher.toast_views()}


@router.post("/toasts/{toast_id}/dismiss")
async def dismiss_toast(toast_id: str, engine: Engine = Depends(get_engine)):
    return {"dismissed": engine.dispatcher.dismiss_toast(toast_id)}
