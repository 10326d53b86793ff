from typing import List, Optional

from pydantic import BaseModel, Field


class ParticipantIn(BaseModel):

    id: str
    name: str
    handle: Optional[str] = None


class ItemRef(BaseModel):

    id: str
    title: str


class ConversationCreate(BaseModel):

    recipient: ParticipantIn
    item: ItemRef
    body: Optional[str] = None


class MessageCreate(BaseModel):

    body: str


class HandoffRequest(BaseModel):

    handle: Optional[str] = None


class HandoffLink(BaseModel):

    conversation_id: str
    url: str


class ParticipantPublic(BaseModel):

    id: str
    name: str
    initials: str
    handle: Optional[str] = None


class MessagePublic(BaseModel):

    id: str
    sender_id: str
    body: str
    created_at: str
    time_label: str
    read: bool
    sent_by_me: bool


class ConversationSummary(BaseModel):

    id: str
    item_id: str
    item_title: str
    other: Optional[ParticipantPublic] = None
    last_message_preview: Optional[str] = None
    last_message_at: Optional[str] = None
    time_label: Optional[str] = None
    has_unread: bool


class ConversationThread(BaseModel):

    id: str
    item_id: str
    item_title: str
    header: str
    other: Optional[ParticipantPublic] = None
    messages: List[MessagePublic] = Field(default_factory=list)
