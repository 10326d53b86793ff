from typing import TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    body: str
    created_at: str
    # set once the other participant opens the conversation
    read: bool
