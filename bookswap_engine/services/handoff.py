import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from bookswap_engine.repositories.conversation_repository import ConversationRepository
from bookswap_engine.utils.errors import MissingHandleError, NotParticipantError

logger = logging.getLogger(__name__)

WHATSAPP_URL = "https://wa.me/{number}?text={text}"
_HANDLE_NOISE = re.compile(r"[\s\-()]")


def normalize_handle(handle: str) -> str:
    return _HANDLE_NOISE.sub("", handle)


def handoff_text(conversation: Dict[str, Any]) -> str:
    return f"Hi, I'm interested in your book: {conversation['item_title']}"


def build_link(handle: str, text: str) -> str:
    # same escaping as JavaScript's encodeURIComponent
    return WHATSAPP_URL.format(number=normalize_handle(handle), text=quote(text, safe="-_.!~*'()"))


class HandoffAdapter:
    """Turns a conversation into a deep link for continuing it on WhatsApp."""

    def __init__(self, conversation_repo: ConversationRepository) -> None:
        self._conversation_repo = conversation_repo

    def link_for(self, conversation_id: str, viewer_id: str, handle: Optional[str] = None) -> str:
        conversation = self._conversation_repo.get(conversation_id)
        if viewer_id not in ConversationRepository.participant_ids(conversation):
            raise NotParticipantError("User is not part of this conversation")
        other = ConversationRepository.other_participant(conversation, viewer_id)

        handle = handle.strip() if handle else None
        if handle:
            if handle != other.get("handle"):
                self._conversation_repo.set_external_handle(conversation_id, other["id"], handle)
        else:
            handle = other.get("handle")
        if not handle:
            raise MissingHandleError(f"Enter a WhatsApp number for {other['name']}")

        logger.info(f"Handing off conversation {conversation_id} to external channel")
        return build_link(handle, handoff_text(conversation))
