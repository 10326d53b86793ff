from fastapi import APIRouter, Depends

from bookswap_engine.engine import Engine
from bookswap_engine.models.user import UserDocument
from bookswap_engine.repositories.conversation_repository import ConversationRepository
from bookswap_engine.schemas.conversation import ConversationCreate, HandoffLink, HandoffRequest, MessageCreate
from bookswap_engine.utils.dependencies import get_current_user, get_engine


router = APIRouter(prefix="/conversations", tags=["chat"])


@router.get("")
async def list_conversations(current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    items = engine.chat.list_conversations(current_user["id"])
    return {"items": items, "unread": engine.chat.unread_conversations(current_user["id"])}


@router.post("")
async def start_conversation(body: ConversationCreate, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    convo, message = engine.chat.start_conversation(
        current_user,
        body.recipient.model_dump(),
        body.item.model_dump(),
        body.body,
    )
    if message is not None:
        engine.notification_service.create_message_notification(body.recipient.id, current_user["name"], convo["_id"])
    return {"ack": {"conversation_id": convo["_id"], "message_id": message["_id"] if message else None}}


@router.get("/{conversation_id}/messages")
async def open_conversation(conversation_id: str, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    return engine.chat.open_conversation(conversation_id, current_user["id"])


@router.post("/{conversation_id}/messages")
async def send_message(conversation_id: str, body: MessageCreate, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    message = engine.chat.send_message(conversation_id, current_user["id"], body.body)
    convo = engine.conversations.get(conversation_id)
    other = ConversationRepository.other_participant(convo, current_user["id"])
    engine.notification_service.create_message_notification(other["id"], current_user["name"], conversation_id)
    return {"ack": {"conversation_id": conversation_id, "message_id": message["_id"]}}


@router.post("/{conversation_id}/handoff", response_model=HandoffLink)
async def handoff(conversation_id: str, body: HandoffRequest, current_user: UserDocument = Depends(get_current_user), engine: Engine = Depends(get_engine)):
    url = engine.handoff.link_for(conversation_id, current_user["id"], body.handle)
    return HandoffLink(conversation_id=conversation_id, url=url)
