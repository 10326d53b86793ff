import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from bookswap_engine.repositories.conversation_repository import ConversationRepository, utc_now
from bookswap_engine.schemas.conversation import (
    ConversationSummary,
    ConversationThread,
    MessagePublic,
    ParticipantPublic,
)
from bookswap_engine.utils.errors import NoUserError, NotParticipantError
from bookswap_engine.utils.formatting import initials, message_time

logger = logging.getLogger(__name__)


class ChatService:

    def __init__(self, conversation_repo: ConversationRepository, clock: Callable[[], datetime] = utc_now) -> None:
        self._conversation_repo = conversation_repo
        self._clock = clock

    @property
    def repository(self) -> ConversationRepository:
        return self._conversation_repo

    def start_conversation(
        self,
        sender: Optional[Dict[str, Any]],
        recipient: Dict[str, Any],
        item: Dict[str, Any],
        body: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        """Resolve the thread about ``item`` between both users, optionally sending the first message."""
        if not sender:
            raise NoUserError("Please log in to message the seller")
        convo = self._conversation_repo.resolve_or_create(sender, recipient, item)
        message = None
        if body is not None:
            message = self._conversation_repo.append_message(convo["_id"], sender["id"], body)
        return convo, message

    def send_message(self, conversation_id: str, sender_id: Optional[str], body: str) -> Dict[str, Any]:
        if not sender_id:
            raise NoUserError("Please log in to send messages")
        return self._conversation_repo.append_message(conversation_id, sender_id, body)

    def open_conversation(self, conversation_id: str, reader_id: Optional[str]) -> ConversationThread:
        if not reader_id:
            raise NoUserError("Please log in to read messages")
        convo = self._conversation_repo.get(conversation_id)
        if reader_id not in ConversationRepository.participant_ids(convo):
            raise NotParticipantError("User is not part of this conversation")
        flipped = self._conversation_repo.mark_read(conversation_id, reader_id)
        if flipped:
            logger.info(f"Marked {flipped} messages read in {conversation_id} for {reader_id}")
            convo = self._conversation_repo.get(conversation_id)
        return self._thread_view(convo, reader_id)

    def list_conversations(self, user_id: Optional[str]) -> List[ConversationSummary]:
        if not user_id:
            return []
        return [self._summary_view(c, user_id) for c in self._conversation_repo.list_for_user(user_id)]

    def unread_conversations(self, user_id: Optional[str]) -> int:
        if not user_id:
            return 0
        return self._conversation_repo.unread_conversation_count(user_id)

    def _participant_view(self, participant: Optional[Dict[str, Any]]) -> Optional[ParticipantPublic]:
        if participant is None:
            return None
        return ParticipantPublic(
            id=participant["id"],
            name=participant["name"],
            initials=initials(participant["name"]),
            handle=participant.get("handle"),
        )

    def _summary_view(self, convo: Dict[str, Any], user_id: str) -> ConversationSummary:
        return ConversationSummary(
            id=convo["_id"],
            item_id=convo["item_id"],
            item_title=convo["item_title"],
            other=self._participant_view(ConversationRepository.other_participant(convo, user_id)),
            last_message_preview=convo.get("last_message_preview"),
            last_message_at=convo.get("last_message_at"),
            time_label=message_time(convo.get("last_message_at"), self._clock()),
            has_unread=ConversationRepository.unread_in(convo, user_id),
        )

    def _thread_view(self, convo: Dict[str, Any], user_id: str) -> ConversationThread:
        now = self._clock()
        messages = [
            MessagePublic(
                id=m["_id"],
                sender_id=m["sender_id"],
                body=m["body"],
                created_at=m["created_at"],
                time_label=message_time(m["created_at"], now),
                read=m["read"],
                sent_by_me=m["sender_id"] == user_id,
            )
            for m in convo["messages"]
        ]
        return ConversationThread(
            id=convo["_id"],
            item_id=convo["item_id"],
            item_title=convo["item_title"],
            header=f"Regarding: {convo['item_title']}",
            other=self._participant_view(ConversationRepository.other_participant(convo, user_id)),
            messages=messages,
        )
