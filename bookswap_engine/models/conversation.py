from typing import List, Optional, TypedDict

from bookswap_engine.models.message import MessageDocument


class ParticipantDocument(TypedDict, total=False):
    id: str
    name: str
    # external messaging channel handle (phone number), cached after first handoff
    handle: Optional[str]


class ConversationDocument(TypedDict, total=False):
    _id: str
    # exactly two, in the order they were first resolved
    participants: List[ParticipantDocument]
    item_id: str
    item_title: str
    messages: List[MessageDocument]
    created_at: str
    last_message_at: Optional[str]
    last_message_preview: Optional[str]
