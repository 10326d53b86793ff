import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId

from bookswap_engine.database.store import KeyValueStore
from bookswap_engine.models.conversation import ConversationDocument
from bookswap_engine.models.message import MessageDocument
from bookswap_engine.utils.errors import (
    EmptyBodyError,
    NotFoundError,
    NotParticipantError,
    SelfConversationError,
)

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "bookswap_conversations"
PREVIEW_LENGTH = 200


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


class ConversationRepository:
    """
    All conversations live under a single store key as one JSON list.

    Every mutator reloads that list before changing it, so several repository
    instances over the same store never work from a stale copy.
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

    def _load(self) -> List[Dict[str, Any]]:
        blob = self._store.get(CONVERSATIONS_KEY)
        if not blob:
            return []
        return json.loads(blob)

    def _save(self, conversations: List[Dict[str, Any]]) -> None:
        self._store.set(CONVERSATIONS_KEY, json.dumps(conversations))

    @staticmethod
    def _find_in(conversations: List[Dict[str, Any]], conversation_id: str) -> Optional[Dict[str, Any]]:
        for convo in conversations:
            if convo["_id"] == conversation_id:
                return convo
        return None

    @staticmethod
    def participant_ids(conversation: Dict[str, Any]) -> List[str]:
        return [p["id"] for p in conversation["participants"]]

    @staticmethod
    def other_participant(conversation: Dict[str, Any], user_id: str) -> Optional[Dict[str, Any]]:
        for participant in conversation["participants"]:
            if participant["id"] != user_id:
                return participant
        return None

    def resolve_or_create(self, participant_a: Dict[str, Any], participant_b: Dict[str, Any], item: Dict[str, Any]) -> ConversationDocument:
        if participant_a["id"] == participant_b["id"]:
            raise SelfConversationError("Cannot start a conversation with yourself")
        pair = {participant_a["id"], participant_b["id"]}
        conversations = self._load()
        for convo in conversations:
            if convo["item_id"] == item["id"] and set(self.participant_ids(convo)) == pair:
                return convo

        doc: ConversationDocument = {
            "_id": self._new_id(),
            "participants": [
                {"id": participant_a["id"], "name": participant_a.get("name", ""), "handle": participant_a.get("handle") or None},
                {"id": participant_b["id"], "name": participant_b.get("name", ""), "handle": participant_b.get("handle") or None},
            ],
            "item_id": item["id"],
            "item_title": item.get("title", ""),
            "messages": [],
            "created_at": self._clock().isoformat(),
            "last_message_at": None,
            "last_message_preview": None,
        }
        conversations.append(doc)
        self._save(conversations)
        logger.info(f"Created conversation {doc['_id']} about item {item['id']}")
        return doc

    def find(self, conversation_id: str) -> Optional[ConversationDocument]:
        return self._find_in(self._load(), conversation_id)

    def get(self, conversation_id: str) -> ConversationDocument:
        convo = self.find(conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        return convo

    def append_message(self, conversation_id: str, sender_id: str, body: str) -> MessageDocument:
        conversations = self._load()
        convo = self._find_in(conversations, conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        text = body.strip() if body else ""
        if not text:
            raise EmptyBodyError("Message body cannot be empty")
        if sender_id not in self.participant_ids(convo):
            raise NotParticipantError("Sender is not part of this conversation")

        now = self._clock().isoformat()
        message: MessageDocument = {
            "_id": self._new_id(),
            "sender_id": sender_id,
            "body": text,
            "created_at": now,
            "read": False,
        }
        convo["messages"].append(message)
        convo["last_message_at"] = now
        convo["last_message_preview"] = text[:PREVIEW_LENGTH]
        self._save(conversations)
        return message

    def mark_read(self, conversation_id: str, reader_id: str) -> int:
        conversations = self._load()
        convo = self._find_in(conversations, conversation_id)
        if convo is None or reader_id not in self.participant_ids(convo):
            logger.debug(f"Skipping mark_read on {conversation_id} for {reader_id}")
            return 0
        flipped = 0
        for message in convo["messages"]:
            if message["sender_id"] != reader_id and not message["read"]:
                message["read"] = True
                flipped += 1
        if flipped:
            self._save(conversations)
        return flipped

    def list_for_user(self, user_id: str) -> List[ConversationDocument]:
        mine = [c for c in self._load() if user_id in self.participant_ids(c)]
        # id ascending first, then a stable sort on recency keeps that as the tie-break
        mine.sort(key=lambda c: c["_id"])
        mine.sort(key=lambda c: datetime.fromisoformat(c["last_message_at"] or c["created_at"]), reverse=True)
        return mine

    def has_unread(self, conversation_id: str, user_id: str) -> bool:
        convo = self.find(conversation_id)
        if convo is None:
            return False
        return self.unread_in(convo, user_id)

    @staticmethod
    def unread_in(conversation: Dict[str, Any], user_id: str) -> bool:
        return any(m["sender_id"] != user_id and not m["read"] for m in conversation["messages"])

    def unread_conversation_count(self, user_id: str) -> int:
        return sum(1 for c in self.list_for_user(user_id) if self.unread_in(c, user_id))

    def set_external_handle(self, conversation_id: str, user_id: str, handle: str) -> Dict[str, Any]:
        conversations = self._load()
        convo = self._find_in(conversations, conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        for participant in convo["participants"]:
            if participant["id"] == user_id:
                participant["handle"] = handle
                self._save(conversations)
                return participant
        raise NotParticipantError("User is not part of this conversation")
